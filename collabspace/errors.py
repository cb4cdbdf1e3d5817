"""Error taxonomy and the structured result every service action returns."""
import functools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class CollabError(Exception):
    status_code = 400
    default_message = "Something went wrong. Please try again."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(CollabError):
    status_code = 400


class NotAuthenticated(CollabError):
    status_code = 401
    default_message = "Not authenticated"


class NotAuthorized(CollabError):
    status_code = 403
    default_message = "Not authorized"


class NotFound(CollabError):
    status_code = 404
    default_message = "Not found"


class Conflict(CollabError):
    status_code = 409


@dataclass
class ActionResult:
    """Outcome of a service action.

    ``success`` and ``status_code`` describe the primary effect only.
    ``side_effects`` records best-effort channels (notification, email,
    publish) by name, each True when it went through.
    """

    success: bool
    error: Optional[str] = None
    message: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    side_effects: Dict[str, bool] = field(default_factory=dict)
    status_code: int = 200

    @classmethod
    def ok(cls, message=None, status_code=200, side_effects=None, **data):
        return cls(True, message=message, data=data, side_effects=side_effects or {}, status_code=status_code)

    @classmethod
    def fail(cls, error, status_code=400):
        return cls(False, error=error, status_code=status_code)

    def to_dict(self):
        body = {'success': self.success}
        if self.error:
            body['error'] = self.error
        if self.message:
            body['message'] = self.message
        body.update(self.data)
        return body


def action(failure_message):
    """Turn a service method into one that always returns an ActionResult.

    The wrapped method's instance must expose ``session``. Every failure rolls
    the session back so no partial writes survive.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(self, *args, **kwargs):
            try:
                return func(self, *args, **kwargs)
            except CollabError as exc:
                self.session.rollback()
                return ActionResult.fail(exc.message, exc.status_code)
            except Exception:
                self.session.rollback()
                logger.exception("%s.%s failed", type(self).__name__, func.__name__)
                return ActionResult.fail(failure_message, 500)

        return wrapper

    return decorator
