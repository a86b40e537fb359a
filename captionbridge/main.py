"""Main application entry point for captionbridge."""

import sys
import time
import argparse
import logging
import socket
from pathlib import Path
from typing import Optional

from .audio.capture import AudioCapture
from .audio.playback import PyAudioPlayer
from .broadcast.channel import LoopbackHub
from .config import CaptionBridgeConfig
from .errors import DeviceError
from .models.session import PipelineMode
from .services.provider_service import ProviderService
from .services.session import PipelineSession
from .ui.caption_screen import CaptionScreen

logger = logging.getLogger(__name__)


class Server:
    """Runs one local participant on the microphone, captions shown on the terminal."""

    def __init__(self, config_path: str, log_level: Optional[str] = None):
        self.config = CaptionBridgeConfig(config_path)
        # Command line overrides config
        setup_logging(self.config, log_level or self.config.get('logging.level', 'INFO'))
        self.session: Optional[PipelineSession] = None
        self.should_exit = False

    def init(self, mode: Optional[str] = None, target_lang: Optional[str] = None) -> None:
        logger.info("Initializing services...")
        if mode:
            self.config.set('pipeline.mode', mode)
        if target_lang:
            self.config.set('pipeline.target_lang', target_lang)
        settings = self.config.pipeline_settings()
        providers = ProviderService(self.config).build()

        sample_rate = self.config.get('audio.sample_rate', 16000)
        chunk_size = self.config.get('audio.chunk_size', 800)
        channels = self.config.get('audio.channels', 1)
        device_index = self.config.get('audio.input_device_index')
        logger.info(f"Audio settings: {sample_rate}Hz, {chunk_size} samples/chunk, {channels} channels")

        def capture_factory(callback):
            return AudioCapture(callback=callback, sample_rate=sample_rate, chunk_size=chunk_size,
                                channels=channels, input_device_index=device_index)

        # Solo mode: nobody else on the hub, captions stay local
        participant_id = self.config.get('session.participant_id') or socket.gethostname()
        channel = LoopbackHub().channel(participant_id)
        self.session = PipelineSession(
            settings,
            providers,
            channel,
            player=PyAudioPlayer(self.config.get('audio.output_device_index')),
            capture_factory=capture_factory,
            sender_name=self.config.get('session.sender_name'),
            workers=self.config.get('pipeline.workers', 4),
        )

    def run(self, duration: Optional[int] = None, ui: bool = True) -> None:
        try:
            self.session.start()
            if ui:
                CaptionScreen(self.session).run(duration)
            elif duration:
                time.sleep(duration)
            else:
                while not self.should_exit:
                    time.sleep(1)
        finally:
            self.cleanup()

    def cleanup(self) -> None:
        if self.session:
            self.session.stop()
            stats = self.session.stats()
            logger.info(f"Session ended: {stats.utterances_sealed} utterances, "
                        f"{stats.captions_produced} captions")
            for caption in self.session.captions():
                print(f"[{caption.speaker_id}] {caption.translated_text}")


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/captionbridge.log')
    console_output = config.get('logging.console_output', True)

    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    # Console handler - warnings only, the live screen owns the terminal
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("captionbridge starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="captionbridge - live captions and spoken translation from your microphone",
        epilog="Keys: p=push-to-talk, m=switch mode, c=clear captions, v=preview voice, q=quit"
    )
    parser.add_argument(
        "--config",
        type=str,
        required=True,
        help="Path to configuration YAML file"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: logging.level from config, else INFO)"
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in PipelineMode],
        help="Utterance mode (overrides pipeline.mode)"
    )
    parser.add_argument(
        "--target-lang",
        type=str,
        help="Caption language, ISO-639-1 (overrides pipeline.target_lang)"
    )
    parser.add_argument(
        "--duration",
        type=int,
        help="Stop after this many seconds"
    )
    parser.add_argument(
        "--no-ui",
        action="store_true",
        help="Run without the live screen; captions are printed on exit"
    )
    parser.add_argument(
        "--version",
        action="version",
        version="captionbridge v0.1.0"
    )
    return parser


def main() -> None:
    """Main entry point for captionbridge."""
    args = build_parser().parse_args()

    try:
        server = Server(args.config, args.log_level)
        server.init(mode=args.mode, target_lang=args.target_lang)
        server.run(args.duration, ui=not args.no_ui)
    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
    except DeviceError as e:
        print(f"🎙️ Microphone unavailable: {e}")
        sys.exit(2)
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
