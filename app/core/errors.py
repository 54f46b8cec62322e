"""Typed errors raised by the code generation pipeline."""


class CodegenError(Exception):
    """Base class for code generation failures."""


class ProjectNotFound(CodegenError):
    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__("Project not found")


class TemplateError(CodegenError):
    """A single template could not be turned into file content."""
    def __init__(self, template: str, message: str):
        self.template = template
        super().__init__(message)


class TemplateNotFound(TemplateError):
    def __init__(self, template: str):
        super().__init__(template, f"Template not found: {template}")


class TemplateRenderError(TemplateError):
    pass


class ArchiveWriteFailure(CodegenError):
    """The archive stream failed mid-write."""
