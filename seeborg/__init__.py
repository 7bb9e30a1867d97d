"""
SeeBorg — a chat bot that learns from the servers it lives in.

Each running session connects one Discord client, keeps one phrase database
per guild, and passes every message through a fixed pipeline:

    1. Command handler (short-circuits on a recognised command)
    2. Answerer (occasionally replies with a learned line)
    3. Learner (stores new lines)
    4. Reaction (occasionally reacts with a custom emoji)
"""

__version__ = "4.0.0"
