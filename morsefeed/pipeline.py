"""End-to-end feed orchestration.

WHY: One run wires together a source (file, stdin or URL), the optional
list of linked pages, the tokenizer, the row writer with its sink (a
file, stdout or the player) and the position store. The CLI should only
have to build a FeedParams and call run_feed().

HOW: FeedRun owns the resources of a run in a contextlib.ExitStack so
they are released on every path. Per page it narrows the active span
(after-marker, saved position, before-marker), streams tokens through
the tokenizer into the RowWriter and tracks the offset just past the
last fully emitted token. Quit, skip and the word budget arrive as
FeedInterrupt exceptions raised at word granularity.

RULES:
- HTML filtering is on for web pages only
- Files are streamed unless markers or position tracking need the whole
  document in memory
- With link following every link is read in order, separated by "=";
  an index page without links is read itself
- Skip abandons the current page; quit abandons the run and, while
  playing, drops the partial row
- Positions are persisted on every exit path; an offset at or past the
  span end is stored as 0 (record removed)
"""

from __future__ import annotations

import logging
import sys
from contextlib import ExitStack
from typing import BinaryIO, Callable, Optional, TextIO, Union

from morsefeed.config import DEFAULT_PLAYER_WORDS_PER_ROW, DEFAULT_WORDS_PER_ROW
from morsefeed.core.ir import PAGE_SEPARATOR, FeedParams, FeedResult, LinkEntry
from morsefeed.core.links import extract_links
from morsefeed.core.source import SourceBuffer, StreamSource, read_stream
from morsefeed.core.store import PositionStore
from morsefeed.core.tokenizer import Tokenizer, iter_tokens
from morsefeed.core.writer import RowSink, RowWriter, StreamSink
from morsefeed.errors import (
    FeedIOError,
    MorseFeedError,
    NoStatePathError,
    QuitRequested,
    SkipRequested,
    WordLimitReached,
)
from morsefeed.fetch import PageFetcher
from morsefeed.playback.controller import PlaybackController

logger = logging.getLogger(__name__)

PlayerFactory = Callable[[FeedParams, bool], PlaybackController]
Source = Union[SourceBuffer, StreamSource]


def _encode(marker: Optional[str]) -> Optional[bytes]:
    return marker.encode("utf-8") if marker else None


class FeedRun:
    """State and resources of a single run (see run_feed())."""

    def __init__(
        self,
        params: FeedParams,
        input_stream: Optional[BinaryIO] = None,
        output_stream: Optional[TextIO] = None,
        fetcher: Optional[PageFetcher] = None,
        player_factory: Optional[PlayerFactory] = None,
        store: Optional[PositionStore] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.params = params
        self.result = FeedResult()
        self.tokenizer = Tokenizer(filter_html=params.url is not None)
        self._input_stream = input_stream
        self._output_stream = output_stream
        self._fetcher = fetcher
        self._player_factory = player_factory or PlaybackController.from_params
        self._store = store
        self._on_status = on_status
        self.writer: Optional[RowWriter] = None

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def _open_store(self) -> None:
        if not self.params.save_position:
            self._store = None
            return
        if self._store is None:
            if not self.params.state_path:
                raise NoStatePathError(
                    "position tracking needs a store file; set HOME or MORSEFEED_STATE_FILE"
                )
            self._store = PositionStore(self.params.state_path)

    def _open_sink(self, stack: ExitStack) -> RowSink:
        params = self.params
        if params.use_player:
            key_control = params.source_id is not None
            controller = self._player_factory(params, key_control)
            return stack.enter_context(controller)

        stream = self._output_stream
        if stream is None and params.out_file_name:
            try:
                stream = stack.enter_context(
                    open(params.out_file_name, "w", encoding="utf-8")
                )
            except OSError as exc:
                raise FeedIOError(
                    "unable to open {}: {}".format(params.out_file_name, exc)
                ) from exc
        return StreamSink(stream or sys.stdout)

    def _open_input(self, stack: ExitStack) -> Source:
        params = self.params
        stream = self._input_stream
        if stream is None:
            if params.in_file_name:
                try:
                    stream = stack.enter_context(open(params.in_file_name, "rb"))
                except OSError as exc:
                    raise FeedIOError(
                        "unable to open {}: {}".format(params.in_file_name, exc)
                    ) from exc
            else:
                stream = sys.stdin.buffer

        if self._store is not None or params.text_after or params.text_before:
            return SourceBuffer(read_stream(stream))
        return StreamSource(stream)

    def _narrow(self, source: Source, after: Optional[str], before: Optional[str], key: Optional[str]) -> None:
        if not isinstance(source, SourceBuffer):
            return
        source.select_after(_encode(after))
        if key is not None and self._store is not None:
            offset = self._store.read_position(key)
            if source.apply_resume(offset):
                logger.info("resuming %s at byte %d", key, offset)
        source.select_before(_encode(before))
        logger.debug("active span for %s: %s", key, source.span)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> FeedResult:
        params = self.params
        if params.follow_links and not params.url:
            raise ValueError("following links requires a URL")
        self._open_store()

        with ExitStack() as stack:
            if params.url and self._fetcher is None:
                self._fetcher = stack.enter_context(PageFetcher())
            sink = self._open_sink(stack)
            words_per_row = params.words_per_row or (
                DEFAULT_PLAYER_WORDS_PER_ROW if params.use_player else DEFAULT_WORDS_PER_ROW
            )
            self.writer = RowWriter(sink, words_per_row, params.word_count)

            send_partial = True
            try:
                self._feed_all(stack)
            except QuitRequested:
                logger.info("quit requested")
                self.result.quit = True
                send_partial = not params.use_player
            except WordLimitReached:
                logger.info("word limit of %d reached", params.word_count)
                self.result.limit_reached = True
            except BaseException:
                self._persist_positions(best_effort=True)
                raise

            self._persist_positions()
            self.writer.finish(send_partial)

        self.result.words = self.writer.word_count
        self.result.rows = self.writer.rows
        logger.debug("run finished: %s", self.result)
        return self.result

    def _feed_all(self, stack: ExitStack) -> None:
        params = self.params
        if params.url:
            source: Source = SourceBuffer(self._fetcher.fetch(params.url))
        else:
            source = self._open_input(stack)
        self._narrow(source, params.text_after, params.text_before, params.source_id)

        if params.follow_links:
            links = extract_links(params.url, source.data, source.span)
            if links:
                self._feed_links(links)
                return
            logger.info("no links found on %s, reading the page itself", params.url)

        self._feed_one(source, params.source_id)

    def _feed_links(self, links: list[LinkEntry]) -> None:
        params = self.params
        for index, link in enumerate(links):
            if self._on_status:
                self._on_status("{}) {}".format(index + 1, link.title or link.url))
            source = SourceBuffer(self._fetcher.fetch(link.url))
            self._narrow(source, params.linked_text_after, params.linked_text_before, link.url)
            self._feed_one(source, link.url, separate=index > 0)

    def _feed_one(self, source: Source, key: Optional[str], separate: bool = False) -> None:
        self.result.pages += 1
        try:
            if separate:
                self.writer.emit(PAGE_SEPARATOR)
            self._feed_page(source, key)
        except SkipRequested:
            logger.info("skipped %s", key or "input")

    def _feed_page(self, source: Source, key: Optional[str]) -> None:
        tokenizer = self.tokenizer
        tokenizer.reset()
        tracking = (
            key is not None
            and self._store is not None
            and isinstance(source, SourceBuffer)
        )
        positions = self.result.positions
        if tracking:
            positions[key] = source.span.start

        try:
            for token, offset in iter_tokens(source.lines()):
                for word in tokenizer.feed(token):
                    self.writer.emit(word)
                if tracking:
                    positions[key] = offset
        finally:
            if tracking and positions[key] >= source.span.end:
                positions[key] = 0

    def _persist_positions(self, best_effort: bool = False) -> None:
        if self._store is None:
            return
        for key, offset in self.result.positions.items():
            try:
                self._store.write_position(key, offset)
            except MorseFeedError as exc:
                if not best_effort:
                    raise
                logger.warning("could not save position for %s: %s", key, exc)


def run_feed(
    params: FeedParams,
    *,
    input_stream: Optional[BinaryIO] = None,
    output_stream: Optional[TextIO] = None,
    fetcher: Optional[PageFetcher] = None,
    player_factory: Optional[PlayerFactory] = None,
    store: Optional[PositionStore] = None,
    on_status: Optional[Callable[[str], None]] = None,
) -> FeedResult:
    """Run the whole pipeline for one parameter record.

    WHY: Single entry point for the CLI and for tests, with every external
    resource injectable.

    Args:
        params: Validated run parameters.
        input_stream: Binary stream to read instead of in_file_name/stdin.
        output_stream: Text stream to write instead of out_file_name/stdout.
        fetcher: An entered PageFetcher to use instead of a new one.
        player_factory: Builds the controller from (params, key_control).
        store: Position store to use instead of params.state_path.
        on_status: Optional callback for progress lines (link titles).

    Returns:
        A FeedResult describing what was emitted and why the run stopped.

    Raises:
        MorseFeedError: Any I/O, fetch, pipe or spawn failure.
    """
    run = FeedRun(
        params,
        input_stream=input_stream,
        output_stream=output_stream,
        fetcher=fetcher,
        player_factory=player_factory,
        store=store,
        on_status=on_status,
    )
    return run.run()
