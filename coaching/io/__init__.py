"""I/O utilities for CSV import/export."""

from .export_csv import export_recommendations_csv, export_summaries_csv
from .import_csv import (
    import_domains_csv,
    import_locations_csv,
    import_pro_moves_csv,
    import_scores_csv,
    import_staff_csv,
)

__all__ = [
    "import_domains_csv",
    "import_locations_csv",
    "import_pro_moves_csv",
    "import_scores_csv",
    "import_staff_csv",
    "export_recommendations_csv",
    "export_summaries_csv",
]
