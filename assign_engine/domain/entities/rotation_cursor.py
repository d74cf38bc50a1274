"""RotationCursor — durable round-robin position of one rule."""

from dataclasses import dataclass


@dataclass
class RotationCursor:
    rule_id: int
    position: int = 0  # pool index handed out next
