"""Simulation runtime: pricing, events, heat, combat and the day loop."""
