"""String and type-mapping helpers available inside codegen templates.

Every helper is total: ``None``, empty strings and jinja ``Undefined`` values
all map to a sensible empty or fallback result instead of raising.
"""
import re
from typing import Any, Callable, Dict, List

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")


def split_words(value: Any) -> List[str]:
    """Split an identifier or phrase into words on case and separator boundaries."""
    if not value:
        return []
    text = str(value)
    text = _ACRONYM_BOUNDARY.sub(r"\1 \2", text)
    text = _CAMEL_BOUNDARY.sub(r"\1 \2", text)
    return [word for word in _NON_ALNUM.split(text) if word]


def kebab_case(value: Any) -> str:
    """``"MyComponent"`` / ``"Blog Post"`` -> ``"my-component"`` / ``"blog-post"``."""
    return "-".join(word.lower() for word in split_words(value))


def snake_case(value: Any) -> str:
    return "_".join(word.lower() for word in split_words(value))


def pascal_case(value: Any) -> str:
    """``"my-component"`` -> ``"MyComponent"``."""
    return "".join(word[0].upper() + word[1:] for word in split_words(value))


def camel_case(value: Any) -> str:
    pascal = pascal_case(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""


def title_case(value: Any) -> str:
    return " ".join(word[0].upper() + word[1:].lower() for word in split_words(value))


_ALREADY_PLURAL = ("ies", "ses", "xes", "zes", "ches", "shes")
_SINGULAR_S_ENDINGS = ("ss", "us", "is")


def pluralize(value: Any) -> str:
    """Naive English pluralization.

    Words that already look plural (``"Tasks"``, ``"Categories"``) are
    returned unchanged.
    """
    if not value:
        return ""
    word = str(value)
    lower = word.lower()
    upper = word.isupper() and len(word) > 1

    def _suffix(text: str) -> str:
        return text.upper() if upper else text

    if lower.endswith(_ALREADY_PLURAL):
        return word
    if lower.endswith("is") and len(lower) > 3:
        return word[:-2] + _suffix("es")
    if lower.endswith("s") and not lower.endswith(_SINGULAR_S_ENDINGS):
        return word
    if lower.endswith("y") and len(lower) > 1 and lower[-2] not in "aeiou":
        return word[:-1] + _suffix("ies")
    if lower.endswith(("s", "x", "z", "ch", "sh")):
        return word + _suffix("es")
    return word + _suffix("s")


# -- type mappings ------------------------------------------------------------

PRISMA_TYPES: Dict[str, str] = {
    "string": "String",
    "text": "String",
    "integer": "Int",
    "decimal": "Decimal",
    "boolean": "Boolean",
    "date": "DateTime",
    "datetime": "DateTime",
    "uuid": "String",
    "json": "Json",
    "enum": "String",
    # uploads are stored as URLs
    "image": "String",
    "file": "String",
    "document": "String",
}

ZOD_TYPES: Dict[str, str] = {
    "string": "z.string()",
    "text": "z.string()",
    "integer": "z.number().int()",
    "decimal": "z.number()",
    "boolean": "z.boolean()",
    "date": "z.coerce.date()",
    "datetime": "z.coerce.date()",
    "uuid": "z.string().uuid()",
    "json": "z.any()",
    "enum": "z.string()",
    "image": "z.string().url()",
    "file": "z.string().url()",
    "document": "z.string().url()",
}

TS_TYPES: Dict[str, str] = {
    "string": "string",
    "text": "string",
    "integer": "number",
    "decimal": "number",
    "boolean": "boolean",
    "date": "Date",
    "datetime": "Date",
    "uuid": "string",
    "json": "unknown",
    "enum": "string",
    "image": "string",
    "file": "string",
    "document": "string",
}


def _type_key(type_tag: Any) -> str:
    return str(type_tag).strip().lower() if type_tag else ""


def prisma_type(type_tag: Any) -> str:
    """Map an abstract property type to its Prisma schema type."""
    return PRISMA_TYPES.get(_type_key(type_tag), "String")


def zod_type(type_tag: Any) -> str:
    return ZOD_TYPES.get(_type_key(type_tag), "z.string()")


def ts_type(type_tag: Any) -> str:
    """Map an abstract property type to a TypeScript type."""
    return TS_TYPES.get(_type_key(type_tag), "string")


def js_literal(value: Any) -> str:
    """Render a scalar default value as a JS/Prisma literal."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


TEMPLATE_HELPERS: Dict[str, Callable[..., Any]] = {
    "kebab_case": kebab_case,
    "snake_case": snake_case,
    "pascal_case": pascal_case,
    "camel_case": camel_case,
    "title_case": title_case,
    "pluralize": pluralize,
    "prisma_type": prisma_type,
    "zod_type": zod_type,
    "ts_type": ts_type,
    "js_literal": js_literal,
}
