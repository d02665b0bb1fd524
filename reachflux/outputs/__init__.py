"""Recording and export of model outputs."""
