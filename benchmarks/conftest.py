"""pytest configuration for benchmarks."""

pytest_plugins = ["pytest_benchmark"]
