import time
from abc import ABC, abstractmethod
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from daylight.core.exceptions import AppError, DatabaseError
from daylight.repositories.base_repository import BaseRepository
from daylight.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseService(ABC):
    """Pipeline step with a validate-then-run template.

    ``execute`` is what activities call. Application errors pass through
    untouched so Temporal can tell retryable failures from permanent ones;
    database errors become ``DatabaseError`` and anything else is wrapped in
    ``AppError``.
    """

    def __init__(self, repository: Optional[BaseRepository] = None):
        self.repository = repository
        self.logger = LOGGER

    @property
    def name(self) -> str:
        return self.__class__.__name__

    async def execute(self, *args, **kwargs) -> Any:
        started = time.monotonic()
        try:
            self.validate(*args, **kwargs)
            result = await self.run(*args, **kwargs)
        except AppError:
            raise
        except SQLAlchemyError as e:
            self.logger.error(f"{self.name} database failure: {e}", exc_info=True)
            raise DatabaseError(f"{self.name} failed: {e}", e) from e
        except Exception as e:
            self.logger.error(f"{self.name} failed: {e}", exc_info=True, extra={"service": self.name})
            raise AppError(f"{self.name} failed: {e}", original_error=e) from e

        self.logger.debug(f"{self.name} finished in {time.monotonic() - started:.2f}s")
        return result

    def validate(self, *args, **kwargs) -> None:
        """Reject bad input before any work is done. No-op by default."""

    @abstractmethod
    async def run(self, *args, **kwargs) -> Any:
        ...
