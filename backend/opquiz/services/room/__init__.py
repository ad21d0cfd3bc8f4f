"""Room domain services: players, rounds, the room controller and the idle reaper.

Everything here is transport-agnostic; the Flask blueprint in
``opquiz.api.room`` only parses requests and serializes results.
"""
