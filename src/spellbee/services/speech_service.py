"""Pronunciation audio for practice words."""
import logging
import re
from pathlib import Path
from typing import Optional

from gtts import gTTS, gTTSError

from spellbee.config import settings

logger = logging.getLogger(__name__)


class SpeechService:
    """Produces one utterance at a time as an mp3 file.

    Audio is fire-and-forget: failures are logged and yield None. Starting
    a new utterance discards the previous one.
    """

    def __init__(self, output_dir: Optional[Path] = None, enabled: Optional[bool] = None):
        self.output_dir = Path(output_dir or settings.paths.pronunciations_dir)
        self.enabled = settings.speech.enabled if enabled is None else enabled
        self.current: Optional[Path] = None

    @staticmethod
    def _sanitize_filename(text: str) -> str:
        """Sanitize text for use as a filename."""
        return re.sub(r"[^\w\-]", "_", text.lower())

    def audio_path(self, text: str, slow: bool = False) -> Path:
        suffix = "_slow" if slow else ""
        return self.output_dir / f"{self._sanitize_filename(text)}{suffix}.mp3"

    def stop(self) -> None:
        """Discard the active utterance, if any."""
        if self.current is not None:
            logger.debug(f"Stopping utterance {self.current.name}")
        self.current = None

    def speak(self, text: str, slow: bool = False) -> Optional[Path]:
        """Produce audio for ``text`` and make it the active utterance."""
        self.stop()
        if not self.enabled:
            return None

        path = self.audio_path(text, slow)
        if not path.exists():
            try:
                self.output_dir.mkdir(parents=True, exist_ok=True)
                tts = gTTS(text=text, lang=settings.speech.lang, tld=settings.speech.tld, slow=slow)
                tts.save(str(path))
                logger.info(f"Pronunciation generated for: {text}, file: {path.name}")
            except (gTTSError, OSError) as e:
                logger.error(f"Error generating pronunciation for: {text}, error: {e}")
                return None

        self.current = path
        return path
