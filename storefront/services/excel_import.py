"""
Excel bulk import for the location hierarchy.

A workbook upload is read from its first worksheet, header row first. Each
data row is matched to entity fields through case-insensitive column
aliases, validated, checked against its parent table in one query and then
upserted on the entity's natural key. Rows that fail are reported as
``"Row <n>: <reason>"`` and skipped; the rest are written in a single
transaction.
"""
import io
import logging
import zipfile
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from storefront.database import Base
from storefront.models.countries import Country
from storefront.models.states import State
from storefront.models.cities import City
from storefront.models.pincodes import Pincode
from storefront.utils.parsing import (
    normalize_text,
    normalize_optional_text,
    parse_positive_int,
    to_valid_status,
)

logger = logging.getLogger(__name__)

MAX_IMPORT_FILE_SIZE = 10 * 1024 * 1024

STATUS_ALIASES = ("status",)
COUNTRY_ALIASES = {
    "name": ("name", "country", "country_name", "country name"),
    "iso_code": ("iso_code", "iso", "iso code"),
    "phone_code": ("phone_code", "phonecode", "phone code"),
}
STATE_ALIASES = {
    "country_id": ("country_id", "countryid", "country id"),
    "name": ("name", "state", "state_name", "state name"),
    "state_code": ("state_code", "statecode", "state code"),
}
CITY_ALIASES = {
    "state_id": ("state_id", "stateid", "state id"),
    "name": ("name", "city", "city_name", "city name"),
}
PINCODE_ALIASES = {
    "city_id": ("city_id", "cityid", "city id"),
    "pincode": ("pincode", "pin_code", "pin code"),
    "area_name": ("area_name", "area", "area name"),
}

SheetRow = Tuple[int, Dict[str, Any]]


class ExcelImportError(Exception):
    """Upload-level failure: the whole import is rejected with 400."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass
class ImportResult:
    total_rows: int = 0
    valid_rows: int = 0
    created: int = 0
    updated: int = 0
    errors: List[str] = field(default_factory=list)

    def summary(self) -> dict:
        return {
            "totalRows": self.total_rows,
            "validRows": self.valid_rows,
            "created": self.created,
            "updated": self.updated,
            "failedRows": len(self.errors),
        }


def is_multipart(content_type: Optional[str]) -> bool:
    return (content_type or "").lower().startswith("multipart/form-data")


async def read_upload_rows(form) -> List[SheetRow]:
    """
    Pull the ``file`` field out of a submitted form and parse its first sheet.

    Raises:
        ExcelImportError: missing file, file over 10MB, unreadable workbook,
            no sheet or no data rows
    """
    upload = form.get("file")
    if not isinstance(upload, UploadFile):
        raise ExcelImportError("Excel file is required")

    content = await upload.read()
    if len(content) > MAX_IMPORT_FILE_SIZE:
        raise ExcelImportError("File size must be 10MB or less")

    logger.info(f"Reading Excel upload {upload.filename} ({len(content)} bytes)")
    return read_sheet_rows(content)


def read_sheet_rows(content: bytes) -> List[SheetRow]:
    """
    Return ``(excel_row_number, {header: value})`` pairs for every non-blank data row.

    Cells to the right of the last header, or under a blank header, have no
    column name and are ignored. Rows that carry values there are logged.
    """
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
        logger.warning(f"Unreadable Excel upload: {str(e)}")
        raise ExcelImportError("Unable to read Excel file")

    try:
        if not workbook.worksheets:
            raise ExcelImportError("Excel file does not contain any sheet")

        sheet = workbook.worksheets[0]
        headers: List[str] = []
        rows: List[SheetRow] = []
        for row_number, values in enumerate(sheet.iter_rows(values_only=True), start=1):
            if row_number == 1:
                headers = [normalize_text(value) for value in values]
                continue
            if all(normalize_text(value) == "" for value in values):
                continue
            record = {
                header: value
                for header, value in zip(headers, values)
                if header
            }
            unnamed = [
                value
                for index, value in enumerate(values)
                if (index >= len(headers) or not headers[index]) and normalize_text(value) != ""
            ]
            if unnamed:
                logger.warning(f"Row {row_number}: ignoring {len(unnamed)} value(s) outside the header columns")
            rows.append((row_number, record))
    finally:
        workbook.close()

    if not rows:
        raise ExcelImportError("Excel sheet is empty")
    return rows


def pick(record: Dict[str, Any], aliases: Iterable[str]) -> Any:
    """First cell whose header matches one of the aliases, ignoring case."""
    lowered = {key.strip().lower(): value for key, value in record.items()}
    for alias in aliases:
        if alias in lowered:
            return lowered[alias]
    return None


def import_countries(db: Session, rows: List[SheetRow]) -> ImportResult:
    result = ImportResult(total_rows=len(rows))
    parsed = []
    for row_number, record in rows:
        name = normalize_text(pick(record, COUNTRY_ALIASES["name"]))
        if not name:
            result.errors.append(f"Row {row_number}: country name is required")
            continue
        parsed.append((row_number, {
            "name": name,
            "iso_code": normalize_optional_text(pick(record, COUNTRY_ALIASES["iso_code"])),
            "phone_code": normalize_optional_text(pick(record, COUNTRY_ALIASES["phone_code"])),
            "status": to_valid_status(pick(record, STATUS_ALIASES)),
        }))

    def upsert(row_number: int, values: dict) -> Optional[bool]:
        existing = db.query(Country).filter(Country.name == values["name"]).first()
        if values["iso_code"]:
            iso_owner = db.query(Country).filter(Country.iso_code == values["iso_code"]).first()
            if iso_owner and (existing is None or iso_owner.id != existing.id):
                result.errors.append(
                    f'Row {row_number}: iso_code "{values["iso_code"]}" already used'
                )
                return None
        return _apply(db, Country, existing, values)

    return _write_rows(db, parsed, upsert, result)


def import_states(db: Session, rows: List[SheetRow]) -> ImportResult:
    return _import_children(
        db,
        rows,
        model=State,
        parent_model=Country,
        parent_field="country_id",
        key_fields=("country_id", "name"),
        parse_row=lambda row_number, record: _parse_child_row(
            row_number,
            record,
            parent_field="country_id",
            parent_aliases=STATE_ALIASES["country_id"],
            key_field="name",
            key_aliases=STATE_ALIASES["name"],
            key_label="state name",
            extra={"state_code": normalize_optional_text(pick(record, STATE_ALIASES["state_code"]))},
        ),
    )


def import_cities(db: Session, rows: List[SheetRow]) -> ImportResult:
    return _import_children(
        db,
        rows,
        model=City,
        parent_model=State,
        parent_field="state_id",
        key_fields=("state_id", "name"),
        parse_row=lambda row_number, record: _parse_child_row(
            row_number,
            record,
            parent_field="state_id",
            parent_aliases=CITY_ALIASES["state_id"],
            key_field="name",
            key_aliases=CITY_ALIASES["name"],
            key_label="city name",
        ),
    )


def import_pincodes(db: Session, rows: List[SheetRow]) -> ImportResult:
    return _import_children(
        db,
        rows,
        model=Pincode,
        parent_model=City,
        parent_field="city_id",
        key_fields=("city_id", "pincode"),
        parse_row=lambda row_number, record: _parse_child_row(
            row_number,
            record,
            parent_field="city_id",
            parent_aliases=PINCODE_ALIASES["city_id"],
            key_field="pincode",
            key_aliases=PINCODE_ALIASES["pincode"],
            key_label="pincode",
            extra={"area_name": normalize_optional_text(pick(record, PINCODE_ALIASES["area_name"]))},
        ),
    )


def _parse_child_row(
    row_number: int,
    record: Dict[str, Any],
    *,
    parent_field: str,
    parent_aliases: Iterable[str],
    key_field: str,
    key_aliases: Iterable[str],
    key_label: str,
    extra: Optional[dict] = None,
) -> Tuple[Optional[dict], Optional[str]]:
    parent_id = parse_positive_int(pick(record, parent_aliases))
    if parent_id is None:
        return None, f"Row {row_number}: valid {parent_field} is required"
    key_value = normalize_text(pick(record, key_aliases))
    if not key_value:
        return None, f"Row {row_number}: {key_label} is required"
    values = {
        parent_field: parent_id,
        key_field: key_value,
        "status": to_valid_status(pick(record, STATUS_ALIASES)),
    }
    values.update(extra or {})
    return values, None


def _import_children(
    db: Session,
    rows: List[SheetRow],
    *,
    model: Type[Base],
    parent_model: Type[Base],
    parent_field: str,
    key_fields: Tuple[str, str],
    parse_row: Callable[[int, Dict[str, Any]], Tuple[Optional[dict], Optional[str]]],
) -> ImportResult:
    result = ImportResult(total_rows=len(rows))
    parsed = []
    for row_number, record in rows:
        values, error = parse_row(row_number, record)
        if error:
            result.errors.append(error)
            continue
        parsed.append((row_number, values))

    # one round trip for every referenced parent
    parent_ids = {values[parent_field] for _, values in parsed}
    known_parents = set()
    if parent_ids:
        known_parents = {
            parent_id
            for (parent_id,) in db.query(parent_model.id).filter(parent_model.id.in_(parent_ids)).all()
        }

    valid = []
    for row_number, values in parsed:
        if values[parent_field] not in known_parents:
            result.errors.append(f"Row {row_number}: {parent_field} {values[parent_field]} not found")
            continue
        valid.append((row_number, values))

    def upsert(row_number: int, values: dict) -> Optional[bool]:
        query = db.query(model)
        for key in key_fields:
            query = query.filter(getattr(model, key) == values[key])
        return _apply(db, model, query.first(), values)

    return _write_rows(db, valid, upsert, result)


def _apply(db: Session, model: Type[Base], existing: Any, values: dict) -> bool:
    """Insert or update one row; returns True when a row was created."""
    if existing is None:
        db.add(model(**values))
        # later rows of the same sheet must see this one
        db.flush()
        return True
    for key, value in values.items():
        setattr(existing, key, value)
    db.flush()
    return False


def _write_rows(
    db: Session,
    rows: List[Tuple[int, dict]],
    upsert: Callable[[int, dict], Optional[bool]],
    result: ImportResult,
) -> ImportResult:
    try:
        for row_number, values in rows:
            created = upsert(row_number, values)
            if created is None:
                continue
            result.valid_rows += 1
            if created:
                result.created += 1
            else:
                result.updated += 1
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Import finished: {result.created} created, {result.updated} updated, "
        f"{len(result.errors)} failed of {result.total_rows} rows"
    )
    return result
