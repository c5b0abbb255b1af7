"""Read-aloud playback over a single speech channel.

``SpeechController`` drives any engine with the browser
``speechSynthesis`` shape (``speak``/``cancel``/``pause``/``resume``) and
guarantees at most one active utterance. The web UI mirrors the same
state machine in ``web/static/app.js``.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from newsroom.models import Article

logger = logging.getLogger(__name__)


def utterance_text(article: Article) -> str:
    """Return the text read aloud for *article*: its title, then its summary."""
    title = article.title.strip().rstrip(".")
    return f"{title}. {article.summary.strip()}"


class SpeechEngine(Protocol):
    """A single-channel speech synthesiser."""

    def speak(self, text: str, on_end: Callable[[], None]) -> None: ...

    def cancel(self) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...


class SpeechController:
    """Play/pause/resume/stop state for one speech engine."""

    def __init__(
        self,
        engine: SpeechEngine,
        on_end: Optional[Callable[[], None]] = None,
    ) -> None:
        self.engine = engine
        self.on_end = on_end
        self.is_speaking = False
        self.is_paused = False
        self.text: Optional[str] = None
        self._utterance = 0

    def play(self, text: str) -> None:
        """Speak *text*, resuming instead if the same text is paused."""
        if self.is_paused and text == self.text:
            self.resume()
            return
        if self.is_speaking:
            self.engine.cancel()

        self._utterance += 1
        token = self._utterance
        self.text = text
        self.is_speaking = True
        self.is_paused = False
        self.engine.speak(text, lambda: self._finished(token))

    def pause(self) -> None:
        if self.is_speaking and not self.is_paused:
            self.engine.pause()
            self.is_paused = True

    def resume(self) -> None:
        if self.is_paused:
            self.engine.resume()
            self.is_paused = False

    def stop(self) -> None:
        """Cancel any utterance and release the engine."""
        if self.is_speaking:
            self.engine.cancel()
        self._reset()

    def close(self) -> None:
        """Teardown hook; same as ``stop``."""
        self.stop()

    def _reset(self) -> None:
        self._utterance += 1
        self.is_speaking = False
        self.is_paused = False
        self.text = None

    def _finished(self, token: int) -> None:
        # end events from cancelled utterances are ignored
        if token != self._utterance:
            return
        self._reset()
        logger.debug("Speech finished")
        if self.on_end is not None:
            self.on_end()
