"""Exception hierarchy for plan validation, materialization and queue handling."""


class PlinthError(Exception):
    """Base exception for plinth operations."""


class ValidationError(PlinthError):
    """A BuildPlan is structurally invalid. Nothing has been built."""

    def __init__(self, message: str, path: str = "BuildPlan") -> None:
        super().__init__(message)
        self.path = path


class StyleError(PlinthError):
    """A single style could not be created or configured."""

    def __init__(self, style_name: str, cause: BaseException) -> None:
        super().__init__(f'Failed to create style "{style_name}": {cause}')
        self.style_name = style_name
        self.cause = cause


class ElementError(PlinthError):
    """A subtree of the element tree could not be materialized."""

    def __init__(self, message: str, class_name: str | None = None, parent_class_name: str | None = None) -> None:
        super().__init__(message)
        self.class_name = class_name
        self.parent_class_name = parent_class_name


class ExecutionError(PlinthError):
    """A build stage failed in a way it could not absorb."""


class ParseError(ExecutionError):
    """A queued plan payload is not valid JSON."""


class QueueError(PlinthError):
    """The collection store or relay transport failed."""


class ItemNotFoundError(QueueError):
    """The requested queue item does not exist."""


class NotFoundError(PlinthError):
    """A site or snapshot the caller asked for is not available."""


class UnknownSiteError(NotFoundError):
    """The site id is not among the configured sites."""

    def __init__(self, site_id: str) -> None:
        super().__init__(f"Unknown site: {site_id}")
        self.site_id = site_id
