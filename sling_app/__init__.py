"""Below-the-hook rigging calculations (sling angles, tensions, hardware sizing)."""
