# orderdesk/services/draft_store.py
from dataclasses import dataclass, field
from typing import List

import redis
from redis.exceptions import RedisError
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from orderdesk.domain.errors import PersistenceError
from orderdesk.domain.schemas import CartLine
from orderdesk.utils.settings import REDIS_URL, DRAFT_KEY_PREFIX
from orderdesk.utils.logging import get_logger

logger = get_logger(__name__)

_lines_adapter = TypeAdapter(List[CartLine])


@dataclass
class Draft:
    lines: List[CartLine] = field(default_factory=list)
    customer_name: str = ""
    # one entry per slot that could not be read, the other slot still loads
    problems: List[PersistenceError] = field(default_factory=list)


class DraftStore:
    """
    Local mirror of one station's cart, two independent slots:
    -draft:{station}:lines     JSON list of cart lines, deleted when the cart is empty
    -draft:{station}:customer  customer name, deleted when blank

    Single slot reads and all writes raise PersistenceError, the cart decides
    what to do with it. load() collects the failures instead.
    """

    def __init__(
        self,
        station: str,
        client: redis.Redis | None = None,
        url: str | None = None,
        prefix: str = DRAFT_KEY_PREFIX,
    ):
        self.station = station
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.lines_key = f"{prefix}:{station}:lines"
        self.customer_key = f"{prefix}:{station}:customer"

    def load_lines(self) -> List[CartLine]:
        try:
            raw = self.redis.get(self.lines_key)
        except RedisError as e:
            raise PersistenceError(f"Cannot read draft {self.lines_key}: {e}") from e
        except UnicodeDecodeError as e:
            raise PersistenceError(f"Corrupt draft {self.lines_key}: not UTF-8") from e

        if not raw:
            return []

        try:
            return _lines_adapter.validate_json(raw)
        except PydanticValidationError as e:
            raise PersistenceError(f"Corrupt draft {self.lines_key}: {e.error_count()} error(s)") from e

    def load_customer(self) -> str:
        try:
            value = self.redis.get(self.customer_key)
        except RedisError as e:
            raise PersistenceError(f"Cannot read draft {self.customer_key}: {e}") from e
        except UnicodeDecodeError as e:
            raise PersistenceError(f"Corrupt draft {self.customer_key}: not UTF-8") from e
        return value or ""

    def load(self) -> Draft:
        """Both slots, each on its own. Never raises, failures end up in `problems`."""
        draft = Draft()

        try:
            draft.customer_name = self.load_customer()
        except PersistenceError as e:
            draft.problems.append(e)

        try:
            draft.lines = self.load_lines()
        except PersistenceError as e:
            draft.problems.append(e)

        return draft

    def save(self, lines: List[CartLine]) -> None:
        try:
            if not lines:
                # nothing written for an empty cart, "no draft" on reload
                self.redis.delete(self.lines_key)
                return
            payload = _lines_adapter.dump_json(lines).decode("utf-8")
            self.redis.set(self.lines_key, payload)
        except RedisError as e:
            raise PersistenceError(f"Cannot write draft {self.lines_key}: {e}") from e

    def save_customer(self, name: str) -> None:
        try:
            if not (name or "").strip():
                self.redis.delete(self.customer_key)
                return
            self.redis.set(self.customer_key, name)
        except RedisError as e:
            raise PersistenceError(f"Cannot write draft {self.customer_key}: {e}") from e

    def clear(self) -> None:
        logger.info(f"Clearing draft for station {self.station}")
        try:
            self.redis.delete(self.lines_key, self.customer_key)
        except RedisError as e:
            raise PersistenceError(f"Cannot clear draft for station {self.station}: {e}") from e
