"""Multi-tool risk workflow for a single transaction.

All registered tools run concurrently against the same (chain, hash). Each
tool fetches the transaction on its own; a failing tool is replaced by its
error marker and never cancels its siblings. The workflow only fails as a
whole when every tool failed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from .dal import TransactionProvider
from .tools import TOOLS, AnalysisTool

logger = logging.getLogger(__name__)

ALL_FAILED = "All analyses failed"
MISSING_INPUT = "Chain and hash are required"


@dataclass(frozen=True)
class ToolResult:
    key: str
    payload: Dict[str, Any]
    failed: bool


def is_error_marker(payload: Any) -> bool:
    return isinstance(payload, Mapping) and "error" in payload


def _run(coro):
    try:
        return asyncio.run(coro)
    except RuntimeError as exc:  # pragma: no cover
        if "asyncio.run() cannot be called" not in str(exc):
            raise
        raise RuntimeError(
            "An event loop is already running; await the coroutine directly instead."
        ) from exc


class RiskAssessmentWorkflow:
    def __init__(
        self,
        provider: TransactionProvider,
        tools: Optional[Mapping[str, AnalysisTool]] = None,
    ) -> None:
        self.provider = provider
        self.tools = dict(tools if tools is not None else TOOLS)

    async def _run_tool(self, tool: AnalysisTool, chain: str, tx_hash: str) -> Dict[str, Any]:
        return await asyncio.to_thread(tool.run, self.provider, chain, tx_hash)

    def _settle(self, key: str, tool: AnalysisTool, outcome: Any) -> ToolResult:
        if isinstance(outcome, Exception):
            logger.error(
                "%s: %s",
                tool.failure_message,
                outcome,
                extra={"extra": {"tool": tool.name, "error_kind": type(outcome).__name__}},
            )
            return ToolResult(key=key, payload=tool.error_marker(), failed=True)
        if isinstance(outcome, BaseException):
            raise outcome
        return ToolResult(key=key, payload=outcome, failed=is_error_marker(outcome))

    async def gather(self, chain: str, tx_hash: str) -> List[ToolResult]:
        """Run every tool and wait for all of them to settle."""
        keys = list(self.tools)
        outcomes = await asyncio.gather(
            *(self._run_tool(self.tools[key], chain, tx_hash) for key in keys),
            return_exceptions=True,
        )
        return [
            self._settle(key, self.tools[key], outcome) for key, outcome in zip(keys, outcomes)
        ]

    async def execute(self, chain: str, tx_hash: str) -> Dict[str, Any]:
        if not chain or not tx_hash:
            logger.error("Workflow execution failed: %s", MISSING_INPUT)
            return {"success": False, "error": MISSING_INPUT}

        results = await self.gather(chain, tx_hash)
        if results and all(result.failed for result in results):
            logger.error(
                "Workflow execution failed: %s",
                ALL_FAILED,
                extra={"extra": {"chain": chain, "tx_hash": tx_hash}},
            )
            return {"success": False, "error": ALL_FAILED}

        response: Dict[str, Any] = {"success": True}
        for result in results:
            response[result.key] = result.payload
        return response


def run_workflow(
    chain: str,
    tx_hash: str,
    *,
    provider: TransactionProvider,
    tools: Optional[Mapping[str, AnalysisTool]] = None,
) -> Dict[str, Any]:
    """Synchronous entry point for callers without an event loop."""
    return _run(RiskAssessmentWorkflow(provider, tools).execute(chain, tx_hash))
