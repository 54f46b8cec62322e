"""Per-component-type file emitters.

Each emitter turns one component into zero or more ``GeneratedFile``s by
shaping its typed schema into a template context and rendering the
templates registered for its type.  A template failure only costs the file
being rendered; structural files (worker, helper) fall back to an inline
placeholder instead.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from app.core.errors import TemplateError
from app.generators.codegen.helpers import (
    TS_TYPES,
    camel_case,
    js_literal,
    kebab_case,
    pascal_case,
    pluralize,
    ts_type,
    zod_type,
)
from app.generators.codegen.renderer import TemplateRenderer
from app.generators.codegen.schema_models import (
    ElementSchema,
    HelperSchema,
    ManipulatorSchema,
    WorkerSchema,
    parse_schema,
)
from app.generators.codegen.types import (
    ComponentSnapshot,
    ComponentType,
    GeneratedFile,
    ProjectIndex,
)

log = logging.getLogger(__name__)


SERVER_MANAGED_FIELDS = {"id", "createdAt", "created_at", "updatedAt", "updated_at"}

LIFECYCLE_ARGS = {
    "beforeCreate": "data",
    "afterCreate": "created",
    "beforeUpdate": "data",
    "afterUpdate": "updated",
    "beforeDelete": "id",
    "afterDelete": "deleted",
}

CRUD_OPERATIONS = ("list", "read", "create", "update", "delete")

# Third-party SDKs a helper may wrap: npm package, version range, import line
INTEGRATIONS: Dict[str, Dict[str, str]] = {
    "sendgrid": {"package": "@sendgrid/mail", "version": "^7.7.0", "import": "import sgMail from '@sendgrid/mail';"},
    "stripe": {"package": "stripe", "version": "^14.10.0", "import": "import Stripe from 'stripe';"},
    "twilio": {"package": "twilio", "version": "^4.20.0", "import": "import twilio from 'twilio';"},
    "supabase": {
        "package": "@supabase/supabase-js",
        "version": "^2.38.4",
        "import": "import { createClient } from '@supabase/supabase-js';",
    },
}

_MANY_RELATIONS = {"one-to-many", "many-to-many", "has-many"}
_RELATION_ALIASES = {"has-many": "one-to-many", "belongs-to": "many-to-one", "has-one": "one-to-one"}
_LENGTH_TYPES = {"string", "text"}
_NUMERIC_TYPES = {"integer", "decimal"}

WORKER_PLACEHOLDER = """/**
 * {name} worker
 */

// TODO: implement
export {{}};
"""

HELPER_PLACEHOLDER = """/**
 * {name} helper
 */

// TODO: implement
export {{}};
"""


@dataclass
class EmitContext:
    """Everything an emitter may consult besides the component itself."""
    renderer: TemplateRenderer
    index: ProjectIndex
    project_id: str = "-"


EmitterFn = Callable[[ComponentSnapshot, EmitContext], List[GeneratedFile]]


# -- naming -------------------------------------------------------------------

def component_slug(component: ComponentSnapshot) -> str:
    """File-name stem for a component; never empty."""
    return kebab_case(component.name) or kebab_case(component.id) or component.type.value


def helper_symbols(name: str) -> Dict[str, str]:
    class_name = pascal_case(name) or "Anonymous"
    if not class_name.endswith("Helper"):
        class_name += "Helper"
    return {"class_name": class_name, "instance_name": camel_case(class_name), "kebab": kebab_case(name)}


def linked_element_name(component: ComponentSnapshot, schema: ManipulatorSchema, index: ProjectIndex) -> str:
    """Name of the element a manipulator exposes.

    ``linkedElement`` wins, then ``linkedElementId`` resolved through the
    project, then the manipulator's own name.
    """
    if schema.linked_element:
        element = index.resolve(ComponentType.ELEMENT, schema.linked_element)
        return element.name if element is not None else schema.linked_element
    element = index.get(schema.linked_element_id)
    if element is not None and element.type == ComponentType.ELEMENT:
        return element.name
    return component.name


def _mount_path(schema: ManipulatorSchema, element_name: str, kebab: str) -> str:
    mount = schema.base_path or f"/api/{kebab_case(pluralize(pascal_case(element_name))) or kebab}"
    return mount if mount.startswith("/") else "/" + mount


def manipulator_route(component: ComponentSnapshot, index: ProjectIndex, project_id: str = "-") -> Dict[str, str]:
    """Import symbol, mount path and controller file for a manipulator."""
    schema = parse_schema(component, project_id)
    element_name = linked_element_name(component, schema, index)
    kebab = kebab_case(element_name) or component_slug(component)
    return {
        "kebab": kebab,
        "symbol": f"{camel_case(kebab)}Router",
        "mount": _mount_path(schema, element_name, kebab),
        "controller_path": f"src/controllers/{kebab}.controller.ts",
    }


# -- context shaping ----------------------------------------------------------

def _number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return js_literal(value)


def _zod_expression(prop) -> str:
    kind = (prop.type or "string").lower()
    if kind == "enum" and prop.values:
        expr = "z.enum([" + ", ".join(js_literal(v) for v in prop.values) + "])"
    else:
        expr = zod_type(kind)

    if kind in _LENGTH_TYPES:
        lower = prop.min_length if prop.min_length is not None else prop.min
        upper = prop.max_length if prop.max_length is not None else prop.max
        if lower is not None:
            expr += f".min({int(lower)})"
        if upper is not None:
            expr += f".max({int(upper)})"
    elif kind in _NUMERIC_TYPES:
        if prop.min is not None:
            expr += f".min({_number(prop.min)})"
        if prop.max is not None:
            expr += f".max({_number(prop.max)})"

    if prop.default is not None and kind != "json":
        expr += f".default({js_literal(prop.default)})"
    elif not prop.required:
        expr += ".optional()"
    return expr


def _prisma_attributes(prop) -> str:
    attrs = ""
    if prop.unique:
        attrs += " @unique"
    kind = (prop.type or "string").lower()
    if prop.default is not None and kind != "json":
        if kind in ("date", "datetime") and str(prop.default).lower() in ("now", "now()"):
            attrs += " @default(now())"
        else:
            attrs += f" @default({js_literal(prop.default)})"
    return attrs


def _property_views(schema: ElementSchema) -> List[Dict[str, Any]]:
    views = []
    for prop in schema.properties:
        field = camel_case(prop.name)
        if not field or prop.name in SERVER_MANAGED_FIELDS or field in SERVER_MANAGED_FIELDS:
            continue
        views.append({
            "field": field,
            "type": (prop.type or "string").lower(),
            "required": prop.required,
            "optional_marker": "" if prop.required or prop.default is not None else "?",
            "zod": _zod_expression(prop),
            "ts": ts_type(prop.type),
            "prisma_attrs": _prisma_attributes(prop),
            "description": prop.description,
        })
    return views


def _relation_views(schema: ElementSchema, index: ProjectIndex) -> List[Dict[str, Any]]:
    views = []
    for rel in schema.relationships:
        if not rel.target:
            continue
        target = index.resolve(ComponentType.ELEMENT, rel.target)
        target_name = target.name if target is not None else rel.target
        kind = kebab_case(rel.type) or "many-to-one"
        kind = _RELATION_ALIASES.get(kind, kind)
        many = kind in _MANY_RELATIONS
        field = camel_case(rel.name) or camel_case(pluralize(target_name) if many else target_name)
        views.append({
            "field": field,
            "kind": kind,
            "many": many,
            "target": pascal_case(target_name),
            "target_kebab": kebab_case(target_name),
            "resolved": target is not None,
            "required": rel.required,
            "foreign_key": "" if many else f"{field}Id",
        })
    return views


def _behavior_views(component: ComponentSnapshot, schema: ElementSchema, index: ProjectIndex, project_id: str = "-"):
    """Split behaviors into lifecycle hooks and custom methods, resolving helpers."""
    hooks: Dict[str, List[Dict[str, Any]]] = {trigger: [] for trigger in LIFECYCLE_ARGS}
    methods: List[Dict[str, Any]] = []
    imports: Dict[str, Dict[str, str]] = {}

    for behavior in schema.behaviors:
        helper = index.resolve(ComponentType.HELPER, behavior.helper) if behavior.helper else None
        helper_instance = ""
        if helper is not None:
            symbols = helper_symbols(helper.name)
            imports[symbols["instance_name"]] = symbols
            helper_instance = symbols["instance_name"]
        elif behavior.helper:
            log.warning(
                "Behavior %r references unknown helper %r",
                behavior.name,
                behavior.helper,
                extra={"project_id": project_id, "component": component.name},
            )

        helper_method = camel_case(behavior.method or behavior.name) or "run"
        trigger = camel_case(behavior.trigger)
        if trigger in LIFECYCLE_ARGS:
            if helper_instance:
                statement = f"await {helper_instance}.{helper_method}({LIFECYCLE_ARGS[trigger]});"
            else:
                label = behavior.description or behavior.name or trigger
                statement = f"// TODO: implement {trigger} hook: {label}"
            hooks[trigger].append({"name": behavior.name, "statement": statement})
        elif behavior.name:
            methods.append({
                "name": camel_case(behavior.name),
                "description": behavior.description,
                "helper_instance": helper_instance,
                "helper_method": helper_method,
            })

    return hooks, methods, [imports[key] for key in sorted(imports)]


def element_context(
    component: ComponentSnapshot,
    schema: ElementSchema,
    index: ProjectIndex,
    project_id: str = "-",
) -> Dict[str, Any]:
    class_name = pascal_case(component.name) or "Entity"
    hooks, methods, helper_imports = _behavior_views(component, schema, index, project_id)
    return {
        "name": component.name,
        "description": component.description,
        "class_name": class_name,
        "kebab": component_slug(component),
        "model_accessor": camel_case(class_name),
        "plural": pluralize(class_name),
        "service_instance": f"{camel_case(class_name)}Service",
        "schema": schema,
        "properties": _property_views(schema),
        "relations": _relation_views(schema, index),
        "hooks": hooks,
        "custom_methods": methods,
        "helper_imports": helper_imports,
        "table_name": schema.table_name,
    }


def _normalize_operations(schema: ManipulatorSchema) -> Dict[str, bool]:
    """Enabled flag per CRUD operation.

    Operations arrive as a list of names or as a map of on/off flags.  An
    empty list or map enables everything, and ``read`` also enables
    ``list`` unless ``list`` is flagged on its own.
    """
    if isinstance(schema.operations, dict):
        flags = {str(op).strip().lower(): enabled for op, enabled in schema.operations.items()}
    else:
        flags = {str(op).strip().lower(): True for op in schema.operations if op}
    if not flags:
        flags = dict.fromkeys(CRUD_OPERATIONS, True)
    if flags.get("read") and "list" not in flags:
        flags["list"] = True
    return {op: bool(flags.get(op)) for op in CRUD_OPERATIONS}


def _auth_levels(schema: ManipulatorSchema) -> Dict[str, str]:
    auth = schema.authentication
    if isinstance(auth, str):
        return {op: auth.lower() or "public" for op in CRUD_OPERATIONS}
    levels = {op: "public" for op in CRUD_OPERATIONS}
    for op, level in (auth or {}).items():
        key = str(op).strip().lower()
        if key in levels:
            levels[key] = str(level).lower() or "public"
    if "read" in (auth or {}) and "list" not in (auth or {}):
        levels["list"] = levels["read"]
    return levels


# (method, path below the mount) of the routes the controller always renders
_CRUD_ROUTES = {
    ("get", "/"): "list",
    ("post", "/"): "create",
    ("get", "/:id"): "read",
    ("put", "/:id"): "update",
    ("patch", "/:id"): "update",
    ("delete", "/:id"): "delete",
}


def _crud_operation(method: str, path: str, prefixes: List[str]) -> Optional[str]:
    """CRUD operation an endpoint duplicates, if any.

    ``path`` may be relative to the mount or spelled with the element's
    resource prefix (``/task/:id``).
    """
    rest = path.rstrip("/")
    for prefix in prefixes:
        if rest == prefix or rest.startswith(prefix + "/"):
            rest = rest[len(prefix):]
            break
    rest = re.sub(r"^/:[^/]+$", "/:id", rest) or "/"
    return _CRUD_ROUTES.get((method, rest))


def manipulator_context(component: ComponentSnapshot, schema: ManipulatorSchema, index: ProjectIndex) -> Dict[str, Any]:
    element_name = linked_element_name(component, schema, index)
    element = index.resolve(ComponentType.ELEMENT, element_name)
    class_name = pascal_case(element_name) or "Entity"
    kebab = kebab_case(element_name) or component_slug(component)
    ops = _normalize_operations(schema)
    auth = _auth_levels(schema)
    prefixes = sorted(
        {_mount_path(schema, element_name, kebab), "/" + kebab, "/" + kebab_case(pluralize(class_name))},
        key=len,
        reverse=True,
    )
    endpoints = []
    for endpoint in schema.endpoints:
        method = (endpoint.method or "GET").lower()
        if method not in ("get", "post", "put", "patch", "delete"):
            method = "get"
        path = endpoint.path or "/" + kebab_case(endpoint.name)
        path = path if path.startswith("/") else "/" + path
        if ops.get(_crud_operation(method, path, prefixes) or ""):
            continue
        endpoints.append({
            "method": method,
            "path": path,
            "description": endpoint.description or endpoint.name,
            "auth": (endpoint.auth or "public").lower(),
        })
    return {
        "name": component.name,
        "description": component.description,
        "element_name": element_name,
        "element_resolved": element is not None,
        "class_name": class_name,
        "kebab": kebab,
        "plural": pluralize(class_name),
        "service_instance": f"{camel_case(class_name)}Service",
        "ops": ops,
        "auth": auth,
        "needs_auth": any(level != "public" for level in auth.values()) or any(e["auth"] != "public" for e in endpoints),
        "pagination": schema.pagination,
        "filters": [camel_case(f) for f in schema.filters if camel_case(f)],
        "endpoints": endpoints,
        "schema": schema,
    }


def worker_context(component: ComponentSnapshot, schema: WorkerSchema, index: ProjectIndex) -> Dict[str, Any]:
    class_name = pascal_case(component.name) or "Background"
    backoff = schema.retry.backoff
    if isinstance(backoff, dict):
        backoff_type = str(backoff.get("type") or "exponential")
        backoff_delay = backoff.get("delay", schema.retry.delay)
    else:
        backoff_type = str(backoff or "exponential")
        backoff_delay = schema.retry.delay

    imports: Dict[str, Dict[str, str]] = {}
    steps = []
    total = len(schema.steps)
    for position, step in enumerate(schema.steps, start=1):
        helper = index.resolve(ComponentType.HELPER, step.helper) if step.helper else None
        helper_instance = ""
        if helper is not None:
            symbols = helper_symbols(helper.name)
            imports[symbols["instance_name"]] = symbols
            helper_instance = symbols["instance_name"]
        steps.append({
            "name": step.name or f"Step {position}",
            "function": camel_case(step.name) or f"step{position}",
            "description": step.description or step.action,
            "helper_instance": helper_instance,
            "progress": round(position * 100 / total),
        })
    return {
        "name": component.name,
        "description": component.description,
        "class_name": class_name,
        "instance_name": camel_case(class_name),
        "queue": schema.queue or component_slug(component),
        "concurrency": max(int(schema.concurrency or 1), 1),
        "attempts": max(int(schema.retry.attempts or 1), 1),
        "backoff_type": backoff_type,
        "backoff_delay": backoff_delay,
        "timeout": schema.timeout,
        "schedule": schema.schedule,
        "steps": steps,
        "helper_imports": [imports[key] for key in sorted(imports)],
        "schema": schema,
    }


def _ts_return_type(returns: str) -> str:
    if not returns:
        return "void"
    if returns.lower() in TS_TYPES:
        return ts_type(returns)
    return returns


def helper_context(component: ComponentSnapshot, schema: HelperSchema, index: ProjectIndex) -> Dict[str, Any]:
    symbols = helper_symbols(component.name)
    integration = INTEGRATIONS.get(schema.integration.lower()) if schema.integration else None
    methods = []
    for method in schema.methods:
        if not camel_case(method.name):
            continue
        methods.append({
            "name": camel_case(method.name),
            "description": method.description,
            "params": [
                {"name": camel_case(p.name), "ts": ts_type(p.type), "required": p.required}
                for p in method.params
                if camel_case(p.name)
            ],
            "returns": _ts_return_type(method.returns),
        })
    return {
        "name": component.name,
        "description": component.description,
        "class_name": symbols["class_name"],
        "instance_name": symbols["instance_name"],
        "integration": schema.integration,
        "integration_import": integration["import"] if integration else "",
        "methods": methods,
        "schema": schema,
    }


# -- rendering ----------------------------------------------------------------

def _render_file(
    ctx: EmitContext,
    component: ComponentSnapshot,
    template: str,
    path: str,
    context: Dict[str, Any],
    fallback: Optional[str] = None,
) -> Optional[GeneratedFile]:
    try:
        return GeneratedFile(path=path, content=ctx.renderer.render(template, context))
    except TemplateError as e:
        extra = {"project_id": ctx.project_id, "component": component.name}
        if fallback is None:
            log.error("Skipping %s: %s", path, e, extra=extra)
            return None
        log.warning("Using placeholder for %s: %s", path, e, extra=extra)
        return GeneratedFile(path=path, content=fallback)


def _collect(*files: Optional[GeneratedFile]) -> List[GeneratedFile]:
    return [f for f in files if f is not None]


def emit_element(component: ComponentSnapshot, ctx: EmitContext) -> List[GeneratedFile]:
    """Entity schemas, service, and service test for an element."""
    context = element_context(component, parse_schema(component, ctx.project_id), ctx.index, ctx.project_id)
    slug = context["kebab"]
    return _collect(
        _render_file(ctx, component, "element/entity.ts.j2", f"src/entities/{slug}.entity.ts", context),
        _render_file(ctx, component, "element/service.ts.j2", f"src/services/{slug}.service.ts", context),
        _render_file(ctx, component, "element/test.ts.j2", f"src/entities/__tests__/{slug}.service.test.ts", context),
    )


def emit_manipulator(component: ComponentSnapshot, ctx: EmitContext) -> List[GeneratedFile]:
    context = manipulator_context(component, parse_schema(component, ctx.project_id), ctx.index)
    if not context["element_resolved"]:
        log.info(
            "Manipulator is not linked to a known element, generating for %r",
            context["element_name"],
            extra={"project_id": ctx.project_id, "component": component.name},
        )
    slug = context["kebab"]
    return _collect(
        _render_file(ctx, component, "manipulator/controller.ts.j2", f"src/controllers/{slug}.controller.ts", context),
        _render_file(ctx, component, "manipulator/test.ts.j2", f"src/controllers/__tests__/{slug}.controller.test.ts", context),
    )


def emit_worker(component: ComponentSnapshot, ctx: EmitContext) -> List[GeneratedFile]:
    context = worker_context(component, parse_schema(component, ctx.project_id), ctx.index)
    return _collect(_render_file(
        ctx,
        component,
        "worker/processor.ts.j2",
        f"src/workers/{component_slug(component)}.worker.ts",
        context,
        fallback=WORKER_PLACEHOLDER.format(name=context["class_name"]),
    ))


def emit_helper(component: ComponentSnapshot, ctx: EmitContext) -> List[GeneratedFile]:
    context = helper_context(component, parse_schema(component, ctx.project_id), ctx.index)
    return _collect(_render_file(
        ctx,
        component,
        "helper/service.ts.j2",
        f"src/helpers/{component_slug(component)}.helper.ts",
        context,
        fallback=HELPER_PLACEHOLDER.format(name=context["class_name"]),
    ))


def emit_nothing(component: ComponentSnapshot, ctx: EmitContext) -> List[GeneratedFile]:
    """Auth, auditor, enforcer and workflow schemas are carried but not rendered."""
    log.debug(
        "No source files for %s components",
        component.type.value,
        extra={"project_id": ctx.project_id, "component": component.name},
    )
    return []


EMITTERS: Dict[ComponentType, EmitterFn] = {
    ComponentType.ELEMENT: emit_element,
    ComponentType.MANIPULATOR: emit_manipulator,
    ComponentType.WORKER: emit_worker,
    ComponentType.HELPER: emit_helper,
    ComponentType.AUTH: emit_nothing,
    ComponentType.AUDITOR: emit_nothing,
    ComponentType.ENFORCER: emit_nothing,
    ComponentType.WORKFLOW: emit_nothing,
}


def generate_component(
    component: ComponentSnapshot,
    renderer: TemplateRenderer,
    index: Optional[ProjectIndex] = None,
    project_id: str = "-",
) -> List[GeneratedFile]:
    """Generate the files for a single component.

    Without an ``index`` cross-component references are rendered by name
    only, as if the referenced components were missing.
    """
    ctx = EmitContext(renderer=renderer, index=index or ProjectIndex.empty(), project_id=project_id)
    return EMITTERS[component.type](component, ctx)
