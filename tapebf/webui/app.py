from __future__ import annotations

import logging
from typing import List, Optional, Union

from fastapi import FastAPI, HTTPException, Response, status
from pydantic import BaseModel, Field

from tapebf.bf_interpreter import (
    DEFAULT_TAPE_LENGTH,
    BrainfuckInterpreter,
    EofPolicy,
    ExecutionError,
)
from tapebf.program import Program, UnmatchedBracketError

from .store import ProgramRecord, ProgramStore

logger = logging.getLogger(__name__)

DEFAULT_API_MAX_STEPS = 1_000_000


class ExecutionOptions(BaseModel):
    input: str = ""
    eof_policy: EofPolicy = EofPolicy.SENTINEL
    max_steps: int = Field(default=DEFAULT_API_MAX_STEPS, ge=1)
    tape_length: int = Field(default=DEFAULT_TAPE_LENGTH, ge=1)


class RunRequest(ExecutionOptions):
    code: str


class RunResult(BaseModel):
    output: str
    output_bytes: List[int]
    steps: int


class ProgramRequest(BaseModel):
    code: str


class ProgramPayload(BaseModel):
    program_id: str
    source: str
    code: str
    length: int
    loops: int


def _execute(program: Union[str, Program], options: ExecutionOptions) -> RunResult:
    interpreter = BrainfuckInterpreter(
        tape_length=options.tape_length,
        eof_policy=options.eof_policy,
        max_steps=options.max_steps,
    )
    try:
        result = interpreter.execute(program, input_data=options.input)
    except UnmatchedBracketError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    except ExecutionError as exc:
        logger.info("Run failed at pc %d: %s", exc.pc, exc)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    # latin-1 keeps a one-to-one mapping between bytes and characters.
    return RunResult(
        output=result.output.decode("latin-1"),
        output_bytes=list(result.output),
        steps=result.steps,
    )


def _program_payload(record: ProgramRecord) -> ProgramPayload:
    program = record.program
    return ProgramPayload(
        program_id=record.program_id,
        source=record.source,
        code=program.to_source(),
        length=len(program),
        loops=len(program.jumps),
    )


def create_app(store: Optional[ProgramStore] = None) -> FastAPI:
    program_store = store or ProgramStore()
    app = FastAPI(title="tapebf API", version="0.1.0")

    def _lookup(program_id: str) -> ProgramRecord:
        try:
            return program_store.get(program_id)
        except KeyError as exc:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=exc.args[0],
            ) from exc

    @app.post("/api/run", response_model=RunResult)
    def run_code(payload: RunRequest) -> RunResult:
        return _execute(payload.code, payload)

    @app.post("/api/programs", response_model=ProgramPayload, status_code=status.HTTP_201_CREATED)
    def create_program(payload: ProgramRequest) -> ProgramPayload:
        try:
            record = program_store.add(payload.code)
        except UnmatchedBracketError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=str(exc),
            ) from exc
        return _program_payload(record)

    @app.get("/api/programs", response_model=List[str])
    def list_programs() -> List[str]:
        return program_store.ids()

    @app.get("/api/programs/{program_id}", response_model=ProgramPayload)
    def get_program(program_id: str) -> ProgramPayload:
        return _program_payload(_lookup(program_id))

    @app.post("/api/programs/{program_id}/run", response_model=RunResult)
    def run_program(program_id: str, payload: ExecutionOptions) -> RunResult:
        record = _lookup(program_id)
        return _execute(record.program, payload)

    @app.delete("/api/programs/{program_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_program(program_id: str) -> Response:
        removed = program_store.remove(program_id)
        if not removed:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Unknown program id: {program_id}",
            )
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


__all__ = ["create_app"]
