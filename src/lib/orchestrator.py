"""
Diagnostic orchestrator

Combines the fast in-process checks with the slow external parser check
and publishes one diagnostic set per document.

Per document:

    edit ──> scan + typecheck ──> publish (immediately)
         └─> (re)start debounce timer
                  │ fires after debounce_delay without another edit
                  v
             parse-check mask ──> external parser ──> remap
                  │
                  v
             publish(baseline + parser diagnostics)
             unless a newer edit happened meanwhile

There is a single pending timer for the whole process; scheduling a check
replaces any pending one. Checks already running are never cancelled, but
each carries the document generation it was started for and its result is
dropped if the document has changed or been closed since. Generation
numbers are process-wide, so a reopened document never reuses one.
"""

import asyncio
import itertools
from typing import Awaitable, Callable, Dict, List, Optional, Set

from loguru import logger

from ..config import appsettings
from ..models.diagnostics import Diagnostic
from .external import ExternalTool, parser_make, syntax_check
from .log import LOG
from .scanner import scan
from .typecheck import typecheck


PublishCallback = Callable[[str, List[Diagnostic]], None]

# Shared by every document and never reset, so a number is never reused
_generations = itertools.count(1)


class DiagnosticScheduler:
    """
    Owner of the process-wide debounce timer and in-flight checks

    Only schedule() and cancel_pending() change what will run.
    """

    def __init__(self, delay: Optional[float] = None):
        """
        Args:
            delay: Debounce delay in seconds; defaults to the configured delay

        Attributes:
            pendingDocument: Document whose check is waiting on the timer
            inflight: Check tasks started by the timer and not yet finished
        """
        self.delay = appsettings.debounce_delay if delay is None else delay
        self.pendingDocument: Optional[str] = None
        self.inflight: Set["asyncio.Task[None]"] = set()
        self._timer: Optional[asyncio.TimerHandle] = None

    def schedule(self, doc_id: str, job: Callable[[], Awaitable[None]]) -> None:
        """
        Run job after the debounce delay, replacing any pending job

        Must be called from within a running event loop.

        Args:
            doc_id: Document the job checks
            job: Coroutine function started when the timer fires
        """
        self.cancel_pending()
        loop = asyncio.get_running_loop()
        self.pendingDocument = doc_id
        self._timer = loop.call_later(self.delay, self._fire, job)
        LOG(f"Scheduled external check for {doc_id} in {self.delay}s", level=3)

    def cancel_pending(self) -> bool:
        """
        Cancel the pending timer, if any

        Returns:
            True if a pending job was cancelled
        """
        if self._timer is None:
            return False
        self._timer.cancel()
        LOG(f"Cancelled pending check for {self.pendingDocument}", level=3)
        self._timer = None
        self.pendingDocument = None
        return True

    def _fire(self, job: Callable[[], Awaitable[None]]) -> None:
        self._timer = None
        self.pendingDocument = None
        task = asyncio.ensure_future(job())
        self.inflight.add(task)
        task.add_done_callback(self._done)

    def _done(self, task: "asyncio.Task[None]") -> None:
        self.inflight.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.opt(exception=task.exception()).error("External check failed")

    async def drain(self) -> None:
        """Wait until the pending timer has fired and every check finished"""
        loop = asyncio.get_running_loop()
        while self._timer is not None or self.inflight:
            if self._timer is not None:
                await asyncio.sleep(max(0.0, self._timer.when() - loop.time()) + 0.001)
            else:
                await asyncio.gather(*list(self.inflight), return_exceptions=True)


class DiagnosticOrchestrator:
    """
    Produces and publishes the diagnostic set of each dialect document

    Example:
        published = {}
        orchestrator = DiagnosticOrchestrator(
            publish=lambda doc_id, diags: published.__setitem__(doc_id, diags)
        )
        orchestrator.document_changed("file:///x.zen.nix", "foo = 1")
        # published now holds the scanner's "missing ';'" diagnostic;
        # the parser diagnostics follow after the debounce delay
    """

    def __init__(
        self,
        publish: PublishCallback,
        parser: Optional[ExternalTool] = None,
        scheduler: Optional[DiagnosticScheduler] = None,
    ):
        """
        Args:
            publish: Sink receiving (doc_id, complete diagnostic set)
            parser: Host parser; defaults to the configured command
            scheduler: Debounce scheduler; a new one by default
        """
        self.publish = publish
        self.parser = parser or parser_make()
        self.scheduler = scheduler or DiagnosticScheduler()
        self.generations: Dict[str, int] = {}

    @staticmethod
    def document_isDialect(doc_id: str, language_id: Optional[str] = None) -> bool:
        """
        Check whether a document is zen-nix source

        Args:
            doc_id: Document URI or path
            language_id: Editor language identifier, if known

        Returns:
            True if the language id matches or the name has a dialect suffix
        """
        if language_id == appsettings.language_id:
            return True
        return any(doc_id.endswith(suffix) for suffix in appsettings.file_extensions)

    @staticmethod
    def diagnostics_compute(text: str) -> List[Diagnostic]:
        """Run the synchronous checks (scanner, then type checker)"""
        return scan(text) + typecheck(text)

    def document_changed(self, doc_id: str, text: str) -> List[Diagnostic]:
        """
        React to new document content

        Publishes the synchronous diagnostics at once and (re)schedules the
        external parser check. Must be called from within a running event
        loop.

        Args:
            doc_id: Stable document identifier
            text: Complete current document text

        Returns:
            The synchronous diagnostic set that was published
        """
        diagnostics = self.diagnostics_compute(text)
        self.publish(doc_id, list(diagnostics))
        LOG(f"{doc_id}: {len(diagnostics)} heuristic diagnostics", level=2)

        generation = next(_generations)
        self.generations[doc_id] = generation

        async def job() -> None:
            await self.externalCheck_run(doc_id, text, generation, diagnostics)

        self.scheduler.schedule(doc_id, job)
        return diagnostics

    async def externalCheck_run(
        self, doc_id: str, text: str, generation: int, baseline: List[Diagnostic]
    ) -> None:
        """
        Run the external parser check and publish the merged set

        Args:
            doc_id: Document checked
            text: Document text at schedule time
            generation: Document generation the check belongs to
            baseline: Synchronous diagnostics captured at schedule time
        """
        found = await syntax_check(text, self.parser)

        if self.generations.get(doc_id) != generation:
            LOG(f"{doc_id}: discarding stale parser result (generation {generation})", level=2)
            return

        LOG(f"{doc_id}: {len(found)} parser diagnostics", level=2)
        self.publish(doc_id, baseline + found)

    def document_closed(self, doc_id: str) -> None:
        """
        Forget a document and clear its diagnostics

        A pending check for it is cancelled; a running one is left to
        finish and its result discarded.
        """
        if self.scheduler.pendingDocument == doc_id:
            self.scheduler.cancel_pending()
        self.generations.pop(doc_id, None)
        self.publish(doc_id, [])
