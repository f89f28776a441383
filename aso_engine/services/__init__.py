"""Engine services: ruleset resolution, pattern caching, classification and combos."""
