"""File-backed store for the city search history."""

import asyncio
import json
import logging
import os
import stat
import tempfile
import uuid
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from weather_dashboard.config import HISTORY_FILE
from weather_dashboard.errors import StorageError
from weather_dashboard.history.models import City

logger = logging.getLogger(__name__)

_CITY_LIST = TypeAdapter(List[City])


class HistoryStore:
    """Persists searched cities as a JSON array in a single file.

    Every operation reads the whole file, changes an in-memory copy and
    writes the whole list back. The cycle runs under one lock so requests
    sharing the event loop cannot interleave inside it.
    """

    def __init__(self, file_path: Optional[str] = None):
        """Initialize the store.

        Args:
            file_path: Path of the history file (defaults to HISTORY_FILE)
        """
        self.file_path = file_path or HISTORY_FILE
        self._lock = asyncio.Lock()
        self._initialized = False

    async def list_cities(self) -> List[City]:
        """Return every stored city in insertion order.

        Raises:
            StorageError: If the history file cannot be read
        """
        async with self._lock:
            return self._read()

    async def add_city(self, name: str) -> City:
        """Add a city unless one with the same name exists (ignoring case).

        Args:
            name: City name to record

        Returns:
            The existing or newly created City

        Raises:
            StorageError: If the history file cannot be read or written
        """
        async with self._lock:
            cities = self._read()

            wanted = name.casefold()
            for city in cities:
                if city.name.casefold() == wanted:
                    logger.debug(f"City '{name}' already in history as {city.id}")
                    return city

            new_city = City(id=str(uuid.uuid4()), name=name)
            cities.append(new_city)
            self._write(cities)

            logger.info(f"Added '{name}' to search history as {new_city.id}")
            return new_city

    async def remove_city(self, city_id: str) -> bool:
        """Remove the city with the given id.

        Args:
            city_id: Identifier of the city to remove

        Returns:
            True if a city was removed, False if no city had that id

        Raises:
            StorageError: If the history file cannot be read or written
        """
        async with self._lock:
            cities = self._read()
            remaining = [city for city in cities if city.id != city_id]

            if len(remaining) == len(cities):
                logger.info(f"No city with id {city_id} in search history")
                return False

            self._write(remaining)
            logger.info(f"Removed city {city_id} from search history")
            return True

    def _ensure_file(self) -> None:
        """Create the history file with an empty list on first use."""
        if self._initialized:
            return

        if not os.path.exists(self.file_path):
            logger.info(f"Creating empty search history at {self.file_path}")
            try:
                directory = os.path.dirname(os.path.abspath(self.file_path))
                os.makedirs(directory, exist_ok=True)
            except OSError as e:
                logger.error(f"Error creating history directory for {self.file_path}: {e}")
                raise StorageError("Failed to initialize search history") from e
            self._write([])

        self._initialized = True

    def _read(self) -> List[City]:
        self._ensure_file()

        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            # Removed behind our back; treat like a fresh store
            logger.warning(f"Search history file {self.file_path} disappeared, recreating")
            self._initialized = False
            self._ensure_file()
            return []
        except UnicodeDecodeError as e:
            logger.error(f"Search history in {self.file_path} is not valid UTF-8: {e}")
            raise StorageError("Search history file is corrupt") from e
        except OSError as e:
            logger.error(f"Error reading search history from {self.file_path}: {e}")
            raise StorageError("Failed to read search history") from e

        if not content.strip():
            return []

        try:
            return _CITY_LIST.validate_python(json.loads(content))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Corrupt search history in {self.file_path}: {e}")
            raise StorageError("Search history file is corrupt") from e

    def _file_mode(self) -> int:
        """Permission bits for a rewritten file: the current ones, or 0o644."""
        try:
            return stat.S_IMODE(os.stat(self.file_path).st_mode)
        except FileNotFoundError:
            return 0o644

    def _write(self, cities: List[City]) -> None:
        """Replace the history file atomically with the given list."""
        payload = json.dumps([city.model_dump() for city in cities], indent=2)
        directory = os.path.dirname(os.path.abspath(self.file_path))

        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".history-", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.chmod(tmp_path, self._file_mode())
            os.replace(tmp_path, self.file_path)
            tmp_path = None
        except OSError as e:
            logger.error(f"Error writing search history to {self.file_path}: {e}")
            raise StorageError("Failed to write search history") from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
