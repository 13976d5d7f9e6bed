# backend/propertysales/api/csv_files.py
from typing import List

from fastapi import APIRouter, Depends

from propertysales.api.deps import get_app_settings
from propertysales.core.settings import Settings
from propertysales.services.csv_files import list_csv_files

router = APIRouter(tags=["csv-files"])


@router.get("/list-csv-files", response_model=List[str])
def csv_files(settings: Settings = Depends(get_app_settings)):
    # read failures come back as [] rather than an error status
    return list_csv_files(settings.SALES_DATA_DIR)
