"""
DevMenu Test Suite

Unit tests for the settings engine, command protocol, live reload loop
and controller wiring.
"""
