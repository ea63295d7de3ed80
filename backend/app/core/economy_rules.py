"""Economy Rules — named constants of the coin economy, injected into the state machine.

Invariants:
    - Frozen: rules never change during a request
    - All amounts are non-negative integers

Design Decisions:
    - Built from Settings at the shell boundary (api/dependencies.py), so core
      functions stay free of configuration IO
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class EconomyRules:
    """Reward, penalty and beginner-program parameters."""
    beginner_session_reward: int = 5
    cancel_reputation_penalty: int = 5
    initial_beginner_credits: int = 3
    beginner_trial_days: int = 30
    upgrade_sessions_learned: int = 3
