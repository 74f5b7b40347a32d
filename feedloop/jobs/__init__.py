"""Background job infrastructure.

Hatchet carries the conversation-initiate, conversation-reply,
conversation-close and interaction-scheduling workflows, and receives
conversation-analyze runs for the downstream analysis consumer.

Usage:
    from feedloop.jobs.worker import main
    main()
"""
