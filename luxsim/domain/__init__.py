"""Domain layer: scenario models and the financial engine."""
