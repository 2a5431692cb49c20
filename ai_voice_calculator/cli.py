import argparse
import logging

from .audio import MicrophoneCapture
from .config import (
    DEFAULT_GREETING,
    DEVICE_TIMEOUT,
    FIXED_WINDOW_SECONDS,
    MAX_LISTEN_SECONDS,
    SILENCE_THRESHOLD,
    VOLUME_THRESHOLD,
    VOSK_MODEL_DIR,
    WAKE_WORDS,
    WINDOW_POLICIES,
    AssistantConfig,
    resource_path,
)
from .contracts import TurnKind
from .errors import DeviceError, SpeakerError, TranscriberError
from .loop import AssistantLoop
from .stt import VoskTranscriber
from .tts import PyttsxSpeaker

log = logging.getLogger("ai_voice_calculator")

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ai-voice-calculator",
        description="Offline voice calculator: say 'twelve plus seven', hear 'nineteen'.",
    )
    p.add_argument("--model", default=resource_path(VOSK_MODEL_DIR),
                   help="path to a Vosk model directory (default: %(default)s)")
    p.add_argument("--window", choices=WINDOW_POLICIES, default="vad",
                   help="how a listening window ends (default: %(default)s)")
    p.add_argument("--max-listen", type=float, default=MAX_LISTEN_SECONDS,
                   help="longest listening window in seconds for the vad policy")
    p.add_argument("--fixed-window", type=float, default=FIXED_WINDOW_SECONDS,
                   help="window length in seconds for the fixed policy")
    p.add_argument("--silence", type=float, default=SILENCE_THRESHOLD,
                   help="seconds of silence after speech that end a vad window")
    p.add_argument("--volume-threshold", type=float, default=VOLUME_THRESHOLD,
                   help="RMS level (int16 scale) treated as speech")
    p.add_argument("--device", default=None, help="input device name or index")
    p.add_argument("--barge-in", action="store_true",
                   help="let the user interrupt spoken answers")
    p.add_argument("--require-wake-word", action="store_true",
                   help=f"ignore phrases that don't contain one of: {', '.join(WAKE_WORDS)}")
    p.add_argument("--no-greeting", action="store_true", help="don't announce start-up")
    p.add_argument("--rate", type=int, default=None, help="speech rate passed to the TTS engine")
    p.add_argument("--log-level", default="INFO",
                   choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    p.add_argument("--log-file", default=None, help="also write the log to this file")
    return p


def configure_logging(level: str, log_file=None) -> None:
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT, handlers=handlers)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level, args.log_file)

    config = AssistantConfig(
        window_policy=args.window,
        max_listen_seconds=args.max_listen,
        fixed_window_seconds=args.fixed_window,
        silence_threshold=args.silence,
        barge_in=args.barge_in,
        wake_words=WAKE_WORDS if args.require_wake_word else (),
        greeting=None if args.no_greeting else DEFAULT_GREETING,
    )

    device = int(args.device) if args.device is not None and args.device.isdigit() else args.device

    try:
        transcriber = VoskTranscriber(args.model)
        speaker = PyttsxSpeaker(rate=args.rate)
    except (TranscriberError, SpeakerError) as e:
        log.error("%s", e)
        return 1

    log.info("Window policy: %s, barge-in: %s, wake word: %s",
             config.window_policy,
             "ENABLED" if config.barge_in else "DISABLED",
             "REQUIRED" if config.wake_words else "OFF")

    capture = MicrophoneCapture(
        policy=config.window_policy,
        silence_seconds=config.silence_threshold,
        volume_threshold=args.volume_threshold,
        device_timeout=DEVICE_TIMEOUT,
        device=device,
    )
    try:
        with capture:
            loop = AssistantLoop(capture, transcriber, speaker, config=config)
            result = loop.run()
    except DeviceError as e:
        log.error("[FATAL] %s", e)
        return 1
    except KeyboardInterrupt:
        log.info("[CLEANUP] Stopping assistant and closing.")
        return 0
    finally:
        speaker.close()

    if result is not None and result.kind is TurnKind.FATAL_ERROR:
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
