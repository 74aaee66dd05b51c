"""CurveFS admin CLI."""
