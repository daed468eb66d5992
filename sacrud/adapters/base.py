# -*- coding: utf-8 -*-
"""
The adapter connects the crud controller to the request context of a web framework
(flask, fastapi, or anything else). The controller only uses the methods below.
"""
import abc
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


class ContextAdapter(abc.ABC):
    @abc.abstractmethod
    def use_store(self, c: Any) -> Any:
        """
        :return: sqlalchemy Session, Connection, AsyncSession or AsyncConnection for this request
        """

    @abc.abstractmethod
    def get(self, c: Any, key: str) -> Any:
        """
        :return: the value stored in the request-scoped store, or None
        """

    @abc.abstractmethod
    def set(self, c: Any, key: str, value: Any) -> None:
        pass

    @abc.abstractmethod
    def get_route_params(self, c: Any) -> Mapping[str, Any]:
        """
        :return: decoded path parameters
        """

    @abc.abstractmethod
    def get_request_body(self, c: Any) -> Any:
        """
        :return: the decoded request body, may be an awaitable
        """

    @abc.abstractmethod
    def respond(self, c: Any, body: Any, status_code: Optional[int] = None) -> Any:
        """
        Hand off the response body to the framework
        """


@dataclass
class RequestContext:
    """
    Explicit request context, used with the SimpleAdapter (eg. in scripts, workers and tests)

    :param db: sqlalchemy session or connection
    :param params: route parameters
    :param body: decoded request body
    :param state: request-scoped key/value store
    """

    db: Any
    params: Dict[str, Any] = field(default_factory=dict)
    body: Any = None
    state: Dict[str, Any] = field(default_factory=dict)


class SimpleAdapter(ContextAdapter):
    """
    Adapter for RequestContext objects, the response is returned as a (body, status_code) tuple
    """

    def use_store(self, c: RequestContext) -> Any:
        return c.db

    def get(self, c: RequestContext, key: str) -> Any:
        return c.state.get(key)

    def set(self, c: RequestContext, key: str, value: Any) -> None:
        c.state[key] = value

    def get_route_params(self, c: RequestContext) -> Mapping[str, Any]:
        return c.params

    def get_request_body(self, c: RequestContext) -> Any:
        return c.body

    def respond(self, c: RequestContext, body: Any, status_code: Optional[int] = None) -> Any:
        return body, status_code
