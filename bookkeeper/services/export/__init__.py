"""CSV export/import package."""

from bookkeeper.services.export.csv_io import (
    CsvFormatError,
    export_transactions_csv,
    import_transactions_csv,
)

__all__ = ["CsvFormatError", "export_transactions_csv", "import_transactions_csv"]
