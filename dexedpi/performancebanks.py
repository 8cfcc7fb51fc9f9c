"""Banks of performance files kept in numbered directories on disk."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path

from dexedpi.performance import ALL_TONE_GENERATORS, PerformanceSettings
from dexedpi.performancefile import load_performance, save_performance

logger = logging.getLogger(__name__)

NUM_PERFORMANCES = 128
NUM_PERFORMANCE_BANKS = 128

PERFORMANCE_DIR = "performance"
DEFAULT_PERFORMANCE_FILENAME = "performance.ini"
DEFAULT_PERFORMANCE_NAME = "Default"

_MAX_NAME_LENGTH = 14
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _leading_int(text: str) -> int | None:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def _index_text(number: int) -> str:
    return f"{number:06d}"[-6:]


def _visible_entries(directory: Path) -> list[os.DirEntry]:
    with os.scandir(directory) as entries:
        return sorted(
            (entry for entry in entries if not entry.name.startswith(".")),
            key=lambda entry: entry.name,
        )


class PerformanceLibrary:
    """Performances stored under ``root``: a legacy default file plus numbered banks.

    ``root/performance.ini`` is the first performance of the first bank;
    ``root/performance/NNN_Bank Name/NNNNNN_Name.ini`` hold all others.
    """

    def __init__(self, root: str | os.PathLike[str], tone_generators: int = ALL_TONE_GENERATORS) -> None:
        self.root = Path(root)
        self.tone_generators = tone_generators
        self._performance_dir = self.root / PERFORMANCE_DIR

        self._file_names = [""] * NUM_PERFORMANCES
        self._bank_names = [""] * NUM_PERFORMANCE_BANKS
        self._bank = 0
        self._last_performance = 0
        self._last_bank = 0
        self._actual_performance = 0
        self._actual_bank = 0
        self._new_name = ""
        self.current_path = self.root / DEFAULT_PERFORMANCE_FILENAME

        self.performance_directory_exists = self._performance_dir.is_dir()
        self.list_banks()
        self.select_bank(0)
        self.select_performance(0)
        logger.info(
            "Loaded default performance bank - last performance: %d", self._last_performance + 1
        )

    # State -------------------------------------------------------------

    @property
    def bank(self) -> int:
        """The bank currently selected."""
        return self._bank

    @property
    def last_performance(self) -> int:
        """Highest performance index present in the selected bank."""
        return self._last_performance

    @property
    def last_bank(self) -> int:
        """Highest bank index found on disk."""
        return self._last_bank

    @property
    def actual_performance(self) -> int:
        """The performance currently in use."""
        return self._actual_performance

    @actual_performance.setter
    def actual_performance(self, perf_id: int) -> None:
        self._check_performance(perf_id)
        self._actual_performance = perf_id

    @property
    def actual_bank(self) -> int:
        """The bank of the performance currently in use."""
        return self._actual_bank

    @actual_bank.setter
    def actual_bank(self, bank_id: int) -> None:
        self._check_bank(bank_id)
        self._actual_bank = bank_id

    @staticmethod
    def _check_performance(perf_id: int) -> None:
        if not 0 <= perf_id < NUM_PERFORMANCES:
            raise ValueError(f"performance id must be 0..{NUM_PERFORMANCES - 1}, got {perf_id}")

    @staticmethod
    def _check_bank(bank_id: int) -> None:
        if not 0 <= bank_id < NUM_PERFORMANCE_BANKS:
            raise ValueError(f"bank id must be 0..{NUM_PERFORMANCE_BANKS - 1}, got {bank_id}")

    def _is_default(self, perf_id: int) -> bool:
        return self._bank == 0 and perf_id == 0

    def _bank_directory(self, bank_id: int) -> Path:
        return self._performance_dir / self.bank_dir_name(bank_id).lstrip("/")

    # Banks -------------------------------------------------------------

    def list_banks(self) -> dict[int, str]:
        """Scan the performance directory for bank directories; return id -> name."""
        self._bank = 0
        self._last_performance = 0
        self._last_bank = 0
        self._bank_names = [""] * NUM_PERFORMANCE_BANKS

        try:
            entries = _visible_entries(self._performance_dir)
        except OSError:
            logger.info("No performance banks detected")
            self.performance_directory_exists = False
            return {}

        found = 0
        for entry in entries:
            if not entry.is_dir():
                continue
            name = entry.name
            if not (4 < len(name) < 26 and name[3] == "_"):
                continue
            number = _leading_int(name[:3])
            if number is None or not 0 < number <= NUM_PERFORMANCE_BANKS:
                logger.info(
                    "Performance bank number out of range: %s (1 to %d)", name, NUM_PERFORMANCE_BANKS
                )
                continue
            bank_id = number - 1
            if self._bank_names[bank_id]:
                logger.info("Duplicate performance bank: %s", name)
                continue
            self._bank_names[bank_id] = name[4:]
            found += 1
            self._last_bank = max(self._last_bank, bank_id)

        if found:
            logger.info("Number of performance banks: %d (last = %d)", found, self._last_bank + 1)
        return {bank_id: name for bank_id, name in enumerate(self._bank_names) if name}

    def is_valid_bank(self, bank_id: int) -> bool:
        """Whether a bank with this index was found."""
        return 0 <= bank_id < NUM_PERFORMANCE_BANKS and bool(self._bank_names[bank_id])

    def bank_name(self, bank_id: int) -> str:
        """The name of a bank, or an empty string if there is none."""
        self._check_bank(bank_id)
        return self._bank_names[bank_id] if self.is_valid_bank(bank_id) else ""

    def bank_dir_name(self, bank_id: int) -> str:
        """The bank's directory as ``/NNN_Name``, or an empty string if there is none."""
        self._check_bank(bank_id)
        if not self.is_valid_bank(bank_id):
            return ""
        return f"/{bank_id + 1:03d}_{self._bank_names[bank_id]}"

    def select_bank(self, bank_id: int) -> bool:
        """Switch to a bank and list its performances; return whether it exists."""
        self._check_bank(bank_id)
        if not self.is_valid_bank(bank_id):
            return False
        self._bank = bank_id
        self._actual_bank = bank_id
        self.list_performances()
        return True

    # Performances ------------------------------------------------------

    def list_performances(self) -> dict[int, str]:
        """Scan the selected bank for performance files; return id -> name."""
        self._file_names = [""] * NUM_PERFORMANCES
        self._last_performance = 0
        if self._bank == 0:
            self._file_names[0] = DEFAULT_PERFORMANCE_NAME

        if self.performance_directory_exists:
            directory = self._bank_directory(self._bank)
            try:
                entries = _visible_entries(directory)
            except OSError as error:
                logger.error("Cannot list performances in %s: %s", directory, error)
                entries = []
            for entry in entries:
                self._add_performance_file(entry)

        return {perf_id: name for perf_id, name in enumerate(self._file_names) if name}

    def _add_performance_file(self, entry: os.DirEntry) -> None:
        name = entry.name
        if not entry.is_file() or not name.lower().endswith(".ini"):
            return
        if not (8 < len(name) < 26 and name[6] == "_"):
            return
        number = _leading_int(name[:6])
        if number is None or not 1 <= number <= NUM_PERFORMANCES:
            logger.info("Performance number out of range: %s (1 to %d)", name, NUM_PERFORMANCES)
            return
        perf_id = number - 1
        if self._file_names[perf_id]:
            logger.info("Duplicate performance %s", name)
            return
        self._last_performance = max(self._last_performance, perf_id)
        self._file_names[perf_id] = name[:-4][7 : 7 + _MAX_NAME_LENGTH]

    def is_valid_performance(self, perf_id: int) -> bool:
        """Whether the selected bank holds a performance with this index."""
        return 0 <= perf_id < NUM_PERFORMANCES and bool(self._file_names[perf_id])

    def select_performance(self, perf_id: int) -> Path:
        """Make a performance current and return the path of its file."""
        self._check_performance(perf_id)
        self._actual_performance = perf_id
        self.current_path = self.full_path(perf_id)
        return self.current_path

    def file_name(self, perf_id: int) -> str:
        """The file name of a performance within its bank directory."""
        self._check_performance(perf_id)
        if self._is_default(perf_id):
            return DEFAULT_PERFORMANCE_FILENAME
        return f"{_index_text(perf_id + 1)}_{self._file_names[perf_id]}.ini"

    def full_path(self, perf_id: int) -> Path:
        """The full path of a performance file."""
        self._check_performance(perf_id)
        if self._is_default(perf_id):
            return self.root / DEFAULT_PERFORMANCE_FILENAME
        if self.performance_directory_exists:
            return self._bank_directory(self._bank) / self.file_name(perf_id)
        return self.root

    def performance_name(self, perf_id: int) -> str:
        """The display name of a performance."""
        self._check_performance(perf_id)
        if self._is_default(perf_id):
            return DEFAULT_PERFORMANCE_NAME
        return self._file_names[perf_id]

    def has_free_slot(self) -> bool:
        """Whether a new performance can be added after the last one."""
        return self._last_performance < NUM_PERFORMANCES - 1

    def first_performance(self) -> int:
        """The lowest valid performance index, or 0 if there is none."""
        return next(
            (perf_id for perf_id in range(NUM_PERFORMANCES) if self.is_valid_performance(perf_id)), 0
        )

    def new_performance_default_name(self) -> str:
        """The name a new performance gets when none is given."""
        return "Perf" + _index_text(self._last_performance + 2)

    def set_new_performance_name(self, name: str) -> None:
        """Set the name for the next created performance, without trailing spaces."""
        self._new_name = name.rstrip(" ")

    def create_performance(self) -> bool:
        """Create an empty performance file after the last one and make it current."""
        if not self.performance_directory_exists:
            logger.info("Performance directory does not exist")
            return False
        new_id = self._last_performance + 1
        if new_id >= NUM_PERFORMANCES:
            logger.warning("No space left for new performance")
            return False

        requested, self._new_name = self._new_name, ""
        index = _index_text(new_id + 1)
        name = requested[:_MAX_NAME_LENGTH] if requested else "Perf" + index
        path = self._bank_directory(self._bank) / f"{index}_{name}.ini"
        try:
            with open(path, "w", encoding="utf-8"):
                pass
        except OSError as error:
            logger.error("Cannot create %s: %s", path, error)
            return False

        self._file_names[new_id] = name
        self._last_performance = new_id
        self._actual_performance = new_id
        self.current_path = path
        return True

    def delete_performance(self, perf_id: int) -> bool:
        """Delete a performance file; the default performance cannot be deleted."""
        if not self.performance_directory_exists:
            logger.info("Performance directory does not exist")
            return False
        if self._is_default(perf_id):
            return False
        path = self._bank_directory(self._bank) / self.file_name(perf_id)
        if not path.is_file():
            return False
        try:
            path.unlink()
        except OSError:
            logger.info("Failed to delete %s", path)
            return False

        self.select_performance(0)
        self._file_names[perf_id] = ""
        if perf_id == self._last_performance:
            while self._last_performance > 0:
                self._last_performance -= 1
                if self.is_valid_performance(self._last_performance):
                    break
        return True

    # Contents ----------------------------------------------------------

    def load(self) -> PerformanceSettings:
        """Load the settings of the current performance."""
        return load_performance(self.current_path)

    def save(self, settings: PerformanceSettings) -> None:
        """Save settings to the current performance file."""
        save_performance(settings, self.current_path, self.tone_generators)