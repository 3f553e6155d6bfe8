"""Training loops, metrics and pipelines for MLPNets."""
