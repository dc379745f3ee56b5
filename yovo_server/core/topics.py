# yovo_server/core/topics.py
# -*- coding: utf-8 -*-
"""
Yovo — Topic progression
------------------------
The advising session walks through a fixed curriculum:

    interest-discovery -> major-exploration -> career-path
        -> college-recommendations -> session-closure

TopicProgress tracks where one session is in that sequence, how many
question/answer rounds were spent on the current topic and how long the
session has been running. It advances automatically once a topic's round
budget is used up or the student asks to move on; `session-closure` is
terminal. An explicit topic-change request jumps anywhere via `jump_to`.
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Dict, Optional, Tuple, Union

from yovo_server.core.prompts import PromptSection

logger = logging.getLogger(__name__)


class Topic(str, Enum):
    INTEREST_DISCOVERY = "interest-discovery"
    MAJOR_EXPLORATION = "major-exploration"
    CAREER_PATH = "career-path"
    COLLEGE_RECOMMENDATIONS = "college-recommendations"
    SESSION_CLOSURE = "session-closure"

    @classmethod
    def parse(cls, value: object) -> Optional["Topic"]:
        """Topic for a wire value, or None if it is not one of ours."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None

    @property
    def label(self) -> str:
        """Human-readable form, e.g. 'career path'."""
        return self.value.replace("-", " ")


TOPIC_SEQUENCE: Tuple[Topic, ...] = (
    Topic.INTEREST_DISCOVERY,
    Topic.MAJOR_EXPLORATION,
    Topic.CAREER_PATH,
    Topic.COLLEGE_RECOMMENDATIONS,
    Topic.SESSION_CLOSURE,
)

# Rounds per topic, roughly one round per planned minute.
MAX_ROUNDS: Dict[Topic, int] = {
    Topic.INTEREST_DISCOVERY: 5,
    Topic.MAJOR_EXPLORATION: 3,
    Topic.CAREER_PATH: 3,
    Topic.COLLEGE_RECOMMENDATIONS: 3,
    Topic.SESSION_CLOSURE: 1,
}
DEFAULT_MAX_ROUNDS = 3

MOVE_ON_KEYWORDS: Tuple[str, ...] = ("next topic", "move on", "continue", "next section")


def section_for_topic(topic: Optional[Topic]) -> Optional[PromptSection]:
    """Prompt section that replaces the full system prompt after a jump to `topic`."""
    if topic is None:
        return None
    if topic in (Topic.INTEREST_DISCOVERY, Topic.MAJOR_EXPLORATION):
        return PromptSection.APPROACH
    if topic in (Topic.CAREER_PATH, Topic.COLLEGE_RECOMMENDATIONS):
        return PromptSection.GUIDANCE
    if topic is Topic.SESSION_CLOSURE:
        return PromptSection.CLOSURE
    raise ValueError(f"No prompt section mapped for topic {topic!r}")


def topic_name(topic: Union[Topic, str]) -> str:
    """Wire value of a topic, recognized or not."""
    return topic.value if isinstance(topic, Topic) else topic


def wants_to_move_on(text: str) -> bool:
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in MOVE_ON_KEYWORDS)


class TopicProgress:
    """
    Per-session topic state machine.

    Parameters
    ----------
    clock:
        Returns seconds as a float; `time.monotonic` by default. Tests pass
        a fake clock to control the reported session duration.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        # A Topic, or the raw string of an unrecognized explicit jump.
        self.current_topic: Union[Topic, str] = TOPIC_SEQUENCE[0]
        self.rounds_in_topic: int = 0
        self.started_at: float = clock()
        self.session_duration_s: int = 0

    def __repr__(self) -> str:
        return (
            f"TopicProgress(current_topic={self.topic_name!r}, "
            f"rounds_in_topic={self.rounds_in_topic}, "
            f"session_duration_s={self.session_duration_s})"
        )

    @property
    def topic_name(self) -> str:
        return topic_name(self.current_topic)

    @property
    def is_known_topic(self) -> bool:
        return isinstance(self.current_topic, Topic)

    @property
    def max_rounds(self) -> int:
        return MAX_ROUNDS.get(self.current_topic, DEFAULT_MAX_ROUNDS)

    @property
    def is_terminal(self) -> bool:
        return self.current_topic is TOPIC_SEQUENCE[-1]

    def refresh_duration(self) -> int:
        self.session_duration_s = max(0, int(self._clock() - self.started_at))
        return self.session_duration_s

    def record_round(self) -> None:
        """Count one normal question/answer exchange against the current topic."""
        self.rounds_in_topic += 1
        self.refresh_duration()

    def should_advance(self, user_text: str) -> bool:
        """True once the round budget is spent or the student asks to move on."""
        return self.rounds_in_topic >= self.max_rounds or wants_to_move_on(user_text)

    def advance(self) -> bool:
        """
        Move to the next topic in the sequence and reset the round counter.

        Returns False (and changes nothing) at the terminal topic or when the
        current topic is not part of the sequence.
        """
        if self.is_terminal or not self.is_known_topic:
            return False
        index = TOPIC_SEQUENCE.index(self.current_topic)
        self.current_topic = TOPIC_SEQUENCE[index + 1]
        self.rounds_in_topic = 0
        logger.info("Advanced to topic %s", self.current_topic.value)
        return True

    def jump_to(self, topic: Union[Topic, str]) -> None:
        """
        Explicit override: any topic, in or out of order, rounds reset.

        Unrecognized values are stored as given; they use the default round
        budget and never advance automatically.
        """
        parsed = Topic.parse(topic)
        self.current_topic = parsed if parsed is not None else str(topic)
        self.rounds_in_topic = 0
        logger.info("Jumped to topic %s", self.topic_name)
