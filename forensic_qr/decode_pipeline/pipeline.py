"""
Decode Pipeline Module.

Runs an ordered list of decode strategies against one still image:

    IDLE -> ATTEMPTING(1) -> ATTEMPTING(2) -> ... -> SUCCEEDED | EXHAUSTED

The pipeline advances only when the current strategy explicitly fails
(no match, or the engine errored / is unavailable) and stops on the
first success. EXHAUSTED is terminal for that image; a new image starts
a new run.

Usage:
    from forensic_qr.decode_pipeline import DecodePipeline, EngineRegistry

    with EngineRegistry() as registry:
        outcome = DecodePipeline(registry).run_file("evidence.png")
        if outcome.succeeded:
            print(outcome.text)

Author: Forensic Engineering Team
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from PIL import Image

from config import get_config
from forensic_qr.utils.logger import get_logger
from forensic_qr.utils.exceptions import DecodeError, EngineRegistryClosedError, ImageLoadError
from .engines import EngineRegistry
from .image_processor import ImageProcessor

# Initialize module logger
logger = get_logger(__name__)

EXHAUSTED_MESSAGE = "Forensic Analysis Failure: QR pattern unreadable or corrupted."

Transform = Callable[[Image.Image], Image.Image]


class DecodeState(str, Enum):
    """States of one decode run."""
    IDLE = "IDLE"
    ATTEMPTING = "ATTEMPTING"
    SUCCEEDED = "SUCCEEDED"
    EXHAUSTED = "EXHAUSTED"


@dataclass
class DecodeStrategy:
    """
    One decode attempt: a chain of image transforms followed by an engine.

    Attributes:
        name: Strategy name used in logs and outcomes
        engine: Registry name of the engine to use
        transforms: Image transforms applied in order before decoding
    """
    name: str
    engine: str
    transforms: Sequence[Transform] = ()

    def prepare(self, image: Image.Image) -> Image.Image:
        for transform in self.transforms:
            image = transform(image)
        return image

    def attempt(self, image: Image.Image, registry: EngineRegistry) -> Optional[str]:
        engine = registry.get(self.engine)
        return engine.try_decode(self.prepare(image))


@dataclass
class DecodeAttempt:
    """Record of one strategy attempt."""
    strategy: str
    engine: str
    succeeded: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'strategy': self.strategy,
            'engine': self.engine,
            'succeeded': self.succeeded,
            'error': self.error
        }


@dataclass
class DecodeOutcome:
    """
    Terminal result of a decode run.

    Attributes:
        state: SUCCEEDED or EXHAUSTED
        text: Decoded text on success
        strategy: Name of the strategy that succeeded
        attempts: Every attempt made, in order
        failure_reason: User-facing message when exhausted
    """
    state: DecodeState
    text: Optional[str] = None
    strategy: Optional[str] = None
    attempts: List[DecodeAttempt] = field(default_factory=list)
    failure_reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state == DecodeState.SUCCEEDED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'text': self.text,
            'strategy': self.strategy,
            'attempts': [a.to_dict() for a in self.attempts],
            'failure_reason': self.failure_reason
        }


def build_strategies(
    entries: Optional[List[Dict[str, Any]]] = None,
    image_processor: Optional[ImageProcessor] = None
) -> List[DecodeStrategy]:
    """
    Build strategies from configuration entries.

    Args:
        entries: List of {name, engine, transforms} mappings. Defaults to
            decode.strategies.
        image_processor: Source of the named transforms.

    Returns:
        Ordered list of DecodeStrategy.

    Raises:
        ValueError: If an entry names an unknown transform.
    """
    processor = image_processor or ImageProcessor()
    transforms: Dict[str, Transform] = {
        'pad': processor.pad,
        'enhance': processor.enhance,
        'rgb': processor.to_rgb,
    }

    if entries is None:
        entries = get_config("decode.strategies", None) or [
            {'name': 'as_is', 'engine': 'zbar', 'transforms': []},
            {'name': 'padded', 'engine': 'zbar', 'transforms': ['pad']},
            {'name': 'padded_secondary', 'engine': 'opencv', 'transforms': ['pad']},
            {'name': 'enhanced', 'engine': 'opencv', 'transforms': ['pad', 'enhance']},
        ]

    strategies = []
    for entry in entries:
        names = entry.get('transforms') or []
        unknown = [n for n in names if n not in transforms]
        if unknown:
            raise ValueError(f"Unknown transform(s) in strategy '{entry.get('name')}': {unknown}")
        strategies.append(DecodeStrategy(
            name=entry['name'],
            engine=entry['engine'],
            transforms=tuple(transforms[n] for n in names)
        ))
    return strategies


class DecodePipeline:
    """
    Strategy state machine for still-image and per-frame decoding.

    Attributes:
        registry: EngineRegistry owned by the caller's session
        strategies: Ordered strategies for still images
        state: State of the most recent run

    Example:
        >>> with EngineRegistry() as registry:
        ...     pipeline = DecodePipeline(registry)
        ...     outcome = pipeline.run(image)
        ...     outcome.state
        <DecodeState.SUCCEEDED: 'SUCCEEDED'>
    """

    def __init__(
        self,
        registry: EngineRegistry,
        strategies: Optional[List[DecodeStrategy]] = None,
        image_processor: Optional[ImageProcessor] = None
    ) -> None:
        self.registry = registry
        self.image_processor = image_processor or ImageProcessor()
        self.strategies = list(
            strategies if strategies is not None else build_strategies(image_processor=self.image_processor)
        )
        if not self.strategies:
            raise ValueError("DecodePipeline needs at least one strategy")
        self.state = DecodeState.IDLE

    def run(self, image: Image.Image, limit: Optional[int] = None) -> DecodeOutcome:
        """
        Try strategies in order until one decodes the image.

        Args:
            image: Image to decode.
            limit: Use only the first `limit` strategies; None uses all.

        Returns:
            DecodeOutcome in state SUCCEEDED or EXHAUSTED.

        Raises:
            EngineRegistryClosedError: If the registry was closed; no
                strategy can succeed on it.
        """
        strategies = self.strategies[:limit] if limit is not None else self.strategies
        attempts: List[DecodeAttempt] = []

        for index, strategy in enumerate(strategies, start=1):
            self.state = DecodeState.ATTEMPTING
            attempt = DecodeAttempt(strategy=strategy.name, engine=strategy.engine)
            attempts.append(attempt)
            logger.debug(f"Attempt {index}/{len(strategies)}: {strategy.name} ({strategy.engine})")

            try:
                text = strategy.attempt(image, self.registry)
            except EngineRegistryClosedError:
                self.state = DecodeState.IDLE
                raise
            except (DecodeError, OSError, ValueError) as e:
                attempt.error = str(e)
                logger.debug(f"Strategy {strategy.name} failed: {e}")
                continue

            if text:
                attempt.succeeded = True
                self.state = DecodeState.SUCCEEDED
                logger.info(f"Decoded {len(text)} characters with strategy '{strategy.name}'")
                return DecodeOutcome(
                    state=self.state,
                    text=text,
                    strategy=strategy.name,
                    attempts=attempts
                )

        self.state = DecodeState.EXHAUSTED
        if limit != 1:
            logger.warning(f"Decode exhausted after {len(attempts)} attempt(s)")
        return DecodeOutcome(state=self.state, attempts=attempts, failure_reason=EXHAUSTED_MESSAGE)

    def decode_frame(self, image: Image.Image) -> DecodeOutcome:
        """Decode one live frame with the first strategy only."""
        return self.run(image, limit=1)

    def run_file(self, filepath: Union[str, Path]) -> DecodeOutcome:
        """
        Load an uploaded image and run the full strategy list on it.

        Args:
            filepath: Path to the image.

        Returns:
            DecodeOutcome. An unreadable file yields EXHAUSTED with the load
            error as failure reason and no attempts.
        """
        try:
            image, _ = self.image_processor.load(filepath)
        except ImageLoadError as e:
            self.state = DecodeState.EXHAUSTED
            return DecodeOutcome(state=self.state, failure_reason=str(e))

        return self.run(image)
