"""Interactive driving of agent turns.

This module provides the loop an interactive frontend runs around an agent:
1. Stream the agent's output on a worker thread
2. Cancel the turn when the user presses the interrupt key
3. Pause when a command needs approval, then resume after the decision
"""

from poolbox.agent.driver import CancellableTask, InteractiveDriver, TurnOutcome

__all__ = ["CancellableTask", "InteractiveDriver", "TurnOutcome"]
