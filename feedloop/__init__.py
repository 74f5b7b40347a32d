"""feedloop: AI-mediated micro-feedback conversations over chat platforms.

Two subsystems carry the decision logic:
- conversation: the per-conversation state machine (initiate, reply, close)
- scheduling: the daily per-organization interaction planner
"""

__version__ = "0.1.0"
