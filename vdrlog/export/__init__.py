"""Export modules for VDR recordings."""

from vdrlog.export.csv import export_csv

__all__ = ["export_csv"]
