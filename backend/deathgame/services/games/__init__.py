"""Game domain services: round resolution, sessions, rooms and timers.

``scoring`` and ``session`` are transport-free and hold the game rules.
``lifecycle`` ties them to Socket.IO broadcasts and the scheduler.
"""
