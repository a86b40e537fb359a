"""Live terminal screen: level meter, VAD state and the caption list."""

import logging
import threading
import time
from datetime import datetime
from typing import List, Optional

from pubsub import pub
from rich.align import Align
from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..errors import DeviceError
from ..models.caption import Caption
from ..models.session import PipelineMode, VadState
from ..services.session import PipelineSession
from .keyboard_input import KeyboardInputHandler

logger = logging.getLogger(__name__)

METER_WIDTH = 30

STATE_STYLES = {
    VadState.IDLE: ("⏸️  idle", "dim"),
    VadState.SPEAKING: ("🗣️  speaking", "bold green"),
    VadState.TRAILING_SILENCE: ("🤫 trailing silence", "yellow"),
}


def render_level_bar(level: float, width: int = METER_WIDTH) -> str:
    """'█████░░░░░  42' style bar for a 0-100 level."""
    filled = int(round(max(0.0, min(100.0, level)) / 100.0 * width))
    return f"{'█' * filled}{'░' * (width - filled)} {level:5.1f}"


def build_caption_table(captions: List[Caption], local_id: str) -> Table:
    table = Table(show_header=True, header_style="bold magenta", expand=True)
    table.add_column("Time", style="dim", width=8)
    table.add_column("Speaker", style="cyan", width=12)
    table.add_column("Caption", style="white", ratio=1)
    for caption in captions:
        when = datetime.fromtimestamp(caption.timestamp / 1000).strftime("%H:%M:%S")
        speaker = "you" if caption.speaker_id == local_id else caption.speaker_id
        text = Text(caption.translated_text)
        if caption.original_text and caption.original_text != caption.translated_text:
            text.append(f"\n{caption.original_text}", style="dim italic")
        table.add_row(when, speaker, text)
    return table


class CaptionScreen:
    """Terminal interface over a running PipelineSession.

    Keys: p push-to-talk press/release, m switch mode, c clear captions,
    v preview voice, q quit.
    """

    def __init__(self, session: PipelineSession, console: Optional[Console] = None):
        self.session = session
        self.console = console or Console()
        self.level = 0.0
        self.vad_state = VadState.IDLE
        self.ptt_held = False
        self.message = ""
        self.running = False
        self.input_handler: Optional[KeyboardInputHandler] = None
        self._lock = threading.Lock()

    # pubsub listeners

    def on_level(self, level: float, state: VadState) -> None:
        self.level = level
        self.vad_state = state

    def on_caption(self, caption: Caption) -> None:
        logger.debug(f"Screen got caption {caption.id}")

    def subscribe(self) -> None:
        pub.subscribe(self.on_level, self.session.topics.level)
        pub.subscribe(self.on_caption, self.session.topics.caption)

    def unsubscribe(self) -> None:
        for listener, topic in ((self.on_level, self.session.topics.level),
                                (self.on_caption, self.session.topics.caption)):
            if pub.isSubscribed(listener, topic):
                pub.unsubscribe(listener, topic)

    # Rendering

    def create_layout(self) -> Layout:
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="main", ratio=1),
            Layout(name="footer", size=3),
        )
        layout["main"].split_row(
            Layout(name="status_panel", ratio=1),
            Layout(name="caption_panel", ratio=3),
        )
        return layout

    def update_display(self, layout: Layout) -> None:
        stats = self.session.stats()
        mode = "push-to-talk" if stats.mode is PipelineMode.PUSH_TO_TALK else "auto"
        running = ("🔴 LIVE", "bold red") if stats.is_running else ("⏹️  STOPPED", "bold yellow")
        header = Text.assemble(
            ("🎙️  captionbridge", "bold blue"), "  |  ", running, "  |  ",
            f"mode: {mode}  |  target: {self.session.settings.target_lang}",
        )
        layout["header"].update(Panel(Align.center(header), style="bright_blue"))

        status = Table.grid(padding=(0, 1))
        status.add_column(style="cyan")
        status.add_column()
        state_label, state_style = STATE_STYLES[self.vad_state]
        status.add_row("Level", render_level_bar(self.level))
        status.add_row("VAD", Text(state_label, style=state_style))
        if stats.mode is PipelineMode.PUSH_TO_TALK:
            status.add_row("PTT", Text("● held", style="bold red") if self.ptt_held else Text("○ released"))
        status.add_row("In flight", "⏳ " + str(stats.in_flight) if stats.in_flight else "0")
        status.add_row("Utterances", f"{stats.utterances_sealed} sealed / {stats.utterances_discarded} dropped")
        status.add_row("Captions", str(stats.captions_produced))
        status.add_row("Playback", f"{stats.playback_pending} queued")
        if stats.cache:
            status.add_row("Cache", f"{stats.cache['size']} entries, {stats.cache['hits']} hits")
        if self.message:
            status.add_row("", Text(self.message, style="italic yellow"))
        layout["status_panel"].update(Panel(status, title="🎵 Audio", border_style="green"))

        captions = self.session.captions()
        if captions:
            body = build_caption_table(captions, self.session.participant_id)
        else:
            body = Text("Speak to see captions here", style="dim white italic")
        layout["caption_panel"].update(Panel(body, title="📝 Captions", border_style="blue"))

        controls = Text.assemble(
            ("P", "bold green"), " push-to-talk  ",
            ("M", "bold yellow"), " switch mode  ",
            ("C", "bold blue"), " clear  ",
            ("V", "bold magenta"), " preview voice  ",
            ("Q", "bold red"), " quit",
        )
        layout["footer"].update(Panel(Align.center(controls), style="bright_black"))

    # Keys

    def handle_key_input(self, key: str) -> bool:
        """Returns True to keep reading keys, False to quit."""
        with self._lock:
            try:
                if key == 'q':
                    self.running = False
                    return False
                if key == 'p':
                    self._toggle_push_to_talk()
                elif key == 'm':
                    self.ptt_held = False
                    new_mode = self.session.toggle_mode()
                    self.message = f"Mode: {new_mode.value}"
                elif key == 'c':
                    self.session.clear_captions()
                    self.message = "Captions cleared"
                elif key == 'v':
                    self.message = "Voice preview queued" if self.session.preview_voice() else "Voice preview unavailable"
            except DeviceError as e:
                self.message = f"Microphone error: {e}"
                logger.error(f"Microphone error after key '{key}': {e}")
        return True

    def _toggle_push_to_talk(self) -> None:
        if self.session.settings.mode is not PipelineMode.PUSH_TO_TALK:
            self.message = "Push-to-talk is off (press M)"
            return
        if self.ptt_held:
            self.session.push_to_talk_up()
            self.ptt_held = False
        else:
            self.session.push_to_talk_down()
            self.ptt_held = True

    def run(self, duration: Optional[float] = None) -> None:
        """Show the screen until 'q' (or ``duration`` seconds)."""
        layout = self.create_layout()
        self.subscribe()
        self.input_handler = KeyboardInputHandler(self.handle_key_input)
        self.input_handler.start()
        self.running = True
        deadline = time.time() + duration if duration else None
        try:
            with Live(layout, console=self.console, refresh_per_second=10, screen=True):
                while self.running and (deadline is None or time.time() < deadline):
                    self.update_display(layout)
                    time.sleep(0.1)
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
        finally:
            self.running = False
            self.input_handler.stop()
            self.unsubscribe()
