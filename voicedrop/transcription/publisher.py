"""Transcription publisher module for pub/sub event publishing."""

import logging
from pubsub import pub
from ..models.transcription import TranscriptionResult

logger = logging.getLogger(__name__)

INTERIM_TOPIC = "transcription.interim"
FINAL_TOPIC = "transcription.final"


class TranscriptionPublisher:
    """Publishes transcription results using pubsub.pub."""

    def __init__(self, interim_topic: str = INTERIM_TOPIC, final_topic: str = FINAL_TOPIC):
        """Initialize transcription publisher.

        Args:
            interim_topic: Topic for non-final results (telemetry only)
            final_topic: Topic for finalized results
        """
        self.interim_topic = interim_topic
        self.final_topic = final_topic
        logger.info(f"TranscriptionPublisher initialized with topics: {interim_topic}, {final_topic}")

    def publish_transcription_result(self, result: TranscriptionResult) -> None:
        """Publish a transcription result to the topic matching its finality."""
        topic = self.final_topic if result.is_final else self.interim_topic
        pub.sendMessage(topic, result=result)
        logger.debug(f"Published transcription result on {topic}: {result.task_id}")
