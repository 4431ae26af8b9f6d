"""
XP and Leveling System

Tracks cumulative XP and derives level / progress from it.

Leveling Curve:
- Flat XP_PER_LEVEL (100) XP per level, starting at level 1
- Level and in-level progress are pure functions of total XP and are never stored

XP Award Rules:
- Completing a task credits its points
- Un-completing a task never debits XP
"""

from typing import Dict
import logging

from routinely import config
from routinely.models import LevelInfo
from routinely.storage import KeyValueStore, StoreKeys, read_int, write_int

logger = logging.getLogger(__name__)


def get_level(total_xp: int) -> int:
    """Level for a total XP amount (level 1 at 0 XP)"""
    return max(total_xp, 0) // config.XP_PER_LEVEL + 1


def get_progress(total_xp: int) -> int:
    """XP earned inside the current level"""
    return max(total_xp, 0) % config.XP_PER_LEVEL


def calculate_level_from_xp(total_xp: int) -> LevelInfo:
    """
    Calculate level information from total XP

    Returns:
        LevelInfo(total_xp, level, xp_in_current_level, xp_to_next_level)
    """
    progress = get_progress(total_xp)
    return LevelInfo(
        total_xp=max(total_xp, 0),
        level=get_level(total_xp),
        xp_in_current_level=progress,
        xp_to_next_level=config.XP_PER_LEVEL - progress,
    )


class ProgressLedger:
    """
    Owner of the USER_XP key.

    Only ever credits: there is no debit operation.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def get_xp(self) -> int:
        """Current total XP (0 when never stored)"""
        return max(await read_int(self.store, StoreKeys.USER_XP), 0)

    async def add_xp(self, amount: int) -> Dict[str, int]:
        """
        Credit XP

        Args:
            amount: XP to add (negative amounts are ignored)

        Returns:
            {
                'xp_awarded': int,
                'old_total_xp': int,
                'new_total_xp': int,
                'old_level': int,
                'new_level': int,
                'leveled_up': bool
            }
        """
        old_total_xp = await self.get_xp()
        awarded = max(amount, 0)
        new_total_xp = old_total_xp + awarded

        if awarded:
            await write_int(self.store, StoreKeys.USER_XP, new_total_xp)

        old_level = get_level(old_total_xp)
        new_level = get_level(new_total_xp)

        logger.info(f"Awarded {awarded} XP. Total: {new_total_xp} XP, Level: {new_level}")
        if new_level > old_level:
            logger.info(f"Leveled up from {old_level} to {new_level}!")

        return {
            "xp_awarded": awarded,
            "old_total_xp": old_total_xp,
            "new_total_xp": new_total_xp,
            "old_level": old_level,
            "new_level": new_level,
            "leveled_up": new_level > old_level,
        }

    async def get_level_info(self) -> LevelInfo:
        """Current XP with derived level and progress"""
        return calculate_level_from_xp(await self.get_xp())
