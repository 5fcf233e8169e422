"""View exporters."""
