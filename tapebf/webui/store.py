from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass
from typing import Dict, List

from tapebf.program import Program, compile_program


@dataclass
class ProgramRecord:
    program_id: str
    program: Program
    source: str


class ProgramStore:
    """Thread-safe registry of compiled programs.

    Programs are immutable, so a record can be handed to several concurrent
    runs; each run builds its own machine state.
    """

    def __init__(self) -> None:
        self._programs: Dict[str, ProgramRecord] = {}
        self._lock = threading.RLock()

    def add(self, source: str) -> ProgramRecord:
        program = compile_program(source)
        record = ProgramRecord(
            program_id=uuid.uuid4().hex,
            program=program,
            source=source,
        )
        with self._lock:
            self._programs[record.program_id] = record
        return record

    def get(self, program_id: str) -> ProgramRecord:
        with self._lock:
            try:
                return self._programs[program_id]
            except KeyError as exc:
                raise KeyError(f"Unknown program id: {program_id}") from exc

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._programs)

    def remove(self, program_id: str) -> bool:
        with self._lock:
            return self._programs.pop(program_id, None) is not None


__all__ = ["ProgramRecord", "ProgramStore"]
