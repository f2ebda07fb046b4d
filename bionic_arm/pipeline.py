"""
Frame analysis: camera frame -> RGB image -> hands -> finger extensions.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

from .fingers import extract_finger_extensions
from .image_utils import prepare
from .latest import LatestOnly
from .serial_link import SerialLinkManager
from .types import AnalysisResult, HandDetector, RawFrame

logger = logging.getLogger(__name__)


class FrameAnalyzer:
    """
    Runs hand analysis on a dedicated worker with keep-only-latest backpressure.

    A frame that is still waiting when a newer one arrives is dropped, so
    latency stays at one frame no matter how slow the detector is.
    """

    def __init__(self, detector: HandDetector,
                 on_result: Callable[[AnalysisResult], None],
                 link: Optional[SerialLinkManager] = None,
                 use_jpeg: bool = False):
        """
        Args:
            detector: Hand landmark detector
            on_result: Called on the analysis worker with every result
            link: Serial link that receives finger extensions while connected
            use_jpeg: Decode frames through a JPEG round trip
        """
        self.detector = detector
        self.on_result = on_result
        self.link = link
        self.use_jpeg = use_jpeg
        self.frames_analyzed = 0

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="frame-analysis")
        self._latest: LatestOnly[RawFrame] = LatestOnly(self._executor, self._process)
        self._closed = False

    @property
    def dropped_frames(self) -> int:
        return self._latest.dropped

    def submit(self, frame: RawFrame) -> Optional[Future]:
        """Hand a frame to the analysis worker without waiting for it."""
        if self._closed:
            return None
        return self._latest.offer(frame)

    def analyze(self, frame: RawFrame) -> AnalysisResult:
        """
        Analyze one frame synchronously.

        Failures produce a result with no hands, sized to the prepared image
        when there is one and to the raw frame otherwise. The caller just
        moves on to the next frame.
        """
        width, height = frame.width, frame.height
        try:
            image = prepare(frame, self.use_jpeg)
            height, width = image.shape[:2]
            hands = list(self.detector.detect(image))
        except Exception as e:
            logger.warning(f"⚠️ Error processing frame {frame.width}x{frame.height}: {e}")
            return AnalysisResult(hands=[], image_width=width, image_height=height)

        extensions = extract_finger_extensions(hands)
        if extensions is not None and self.link is not None and self.link.is_connected:
            self.link.send(extensions)

        return AnalysisResult(hands=hands, image_width=width, image_height=height,
                              extensions=extensions)

    def wait_idle(self, timeout: Optional[float] = None) -> None:
        """Block until every frame submitted so far has been handled or dropped."""
        self._executor.submit(lambda: None).result(timeout)

    def close(self) -> None:
        """Retire the analysis worker; frames submitted afterwards are ignored."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=True)

    def _process(self, frame: RawFrame) -> None:
        result = self.analyze(frame)
        self.frames_analyzed += 1
        self.on_result(result)
