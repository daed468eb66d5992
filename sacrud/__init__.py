# flake8: noqa: F401
#
from .crud_init import CRUD, log
from .errors import (
    CrudError,
    ValidationError,
    NotFoundError,
    UnAuthorizedError,
    ForbiddenError,
    ConfigurationError,
    GenericError,
)
from .schema import ModelSchema, ModelRegistry
from .attributes import Source, Custom, SERVER_DEFAULT
from .options import LoadOptions, CreateOptions, UpdateOptions, ResponseOptions
from .adapters import ContextAdapter, RequestContext, SimpleAdapter
from .controller import CrudController
from .__about__ import __version__, __description__

__all__ = (
    "__version__",
    "__description__",
    # config:
    "CRUD",
    "log",
    # models:
    "ModelSchema",
    "ModelRegistry",
    # actions:
    "CrudController",
    "Source",
    "Custom",
    "SERVER_DEFAULT",
    "LoadOptions",
    "CreateOptions",
    "UpdateOptions",
    "ResponseOptions",
    # adapters:
    "ContextAdapter",
    "RequestContext",
    "SimpleAdapter",
    # Errors:
    "CrudError",
    "ValidationError",
    "NotFoundError",
    "UnAuthorizedError",
    "ForbiddenError",
    "ConfigurationError",
    "GenericError",
)
