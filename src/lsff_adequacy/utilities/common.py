"""
Utility functions for the LSFF adequacy project

Common functions used by the pipeline, the runner and the tests.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union
import pandas as pd
import yaml

from ..exceptions import SchemaError

logger = logging.getLogger(__name__)

RUN_HANDLER_FLAG = '_lsff_adequacy_handler'


def load_yaml_config(config_path: Union[str, Path]) -> dict:
    """
    Load a YAML configuration file
    
    Args:
        config_path: Path to YAML file
    
    Returns:
        Dictionary from YAML file
    
    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If file is not valid YAML
    """
    path = Path(config_path)
    
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    
    with open(path, 'r') as f:
        try:
            config = yaml.safe_load(f)
            return config if config else {}
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Error parsing YAML: {e}")


def save_yaml_config(data: dict, config_path: Union[str, Path]):
    """
    Save a dictionary as a YAML file
    
    Args:
        data: Dictionary to save
        config_path: Where to save the file
    """
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    
    with open(path, 'w') as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def get_project_root() -> Path:
    """
    Get the project root directory
    
    Returns:
        Path to project root
    """
    # Assumes this file is in src/lsff_adequacy/utilities/
    return Path(__file__).parent.parent.parent.parent


def setup_logging(
    log_level: str = 'INFO',
    log_file: Optional[Path] = None
) -> logging.Logger:
    """
    Configure the root logger for a command-line run

    Handlers added by an earlier call are replaced, so repeated runs in one
    process do not duplicate log lines.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file to also write logs to

    Returns:
        The root logger
    """
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for handler in [h for h in root_logger.handlers if getattr(h, RUN_HANDLER_FLAG, False)]:
        root_logger.removeHandler(handler)
        handler.close()

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, RUN_HANDLER_FLAG, True)
        root_logger.addHandler(handler)

    return root_logger


def find_missing_columns(df: pd.DataFrame, required_columns: Iterable[str]) -> List[str]:
    """Return the required columns that are absent from df, in order"""
    return [col for col in required_columns if col not in df.columns]


def validate_required_columns(
    df: pd.DataFrame,
    required_columns: List[str],
    dataset_name: str = "dataset"
) -> None:
    """
    Validate that a DataFrame has required columns
    
    Args:
        df: DataFrame to validate
        required_columns: List of required column names
        dataset_name: Name for error messages
    
    Raises:
        SchemaError: If any required column is missing
    """
    missing = find_missing_columns(df, required_columns)
    
    if missing:
        logger.error(f"{dataset_name} missing required columns: {', '.join(missing)}")
        logger.info(f"Available columns: {', '.join(map(str, df.columns))}")
        raise SchemaError(dataset_name, missing)


def create_data_lineage_file(
    output_path: Path,
    source_files: List[Path],
    processing_steps: List[str],
    additional_info: Optional[Dict] = None
) -> Path:
    """
    Create a metadata file documenting data lineage
    
    Args:
        output_path: Where the processed data was saved
        source_files: List of source files used
        processing_steps: List of processing steps applied
        additional_info: Additional metadata to include
    
    Returns:
        Path of the lineage file
    """
    lineage_path = output_path.parent / f"{output_path.stem}_lineage.yaml"
    
    lineage = {
        'output_file': str(output_path),
        'created': pd.Timestamp.now().isoformat(),
        'source_files': [str(f) for f in source_files],
        'processing_steps': processing_steps,
    }
    
    if additional_info:
        lineage.update(additional_info)
    
    save_yaml_config(lineage, lineage_path)
    logger.info(f"Data lineage saved: {lineage_path}")
    return lineage_path


# Delimiter per supported input/output suffix
TABLE_SEPARATORS = {'.csv': ',', '.tsv': '\t', '.txt': '\t'}


def _table_separator(path: Path) -> str:
    try:
        return TABLE_SEPARATORS[path.suffix.lower()]
    except KeyError:
        raise ValueError(
            f"Unsupported table format {path.suffix!r} for {path}; "
            f"expected one of {', '.join(TABLE_SEPARATORS)}"
        ) from None


def load_table(file_path: Path) -> pd.DataFrame:
    """
    Load a delimited input table

    Ids are read as text so that codes like '007' keep their leading zeros.

    Raises:
        ValueError: On an unsupported suffix or a malformed file
    """
    sep = _table_separator(file_path)
    df = pd.read_csv(
        file_path,
        sep=sep,
        dtype={'householdId': str, 'foodGenusId': str, 'food_genus_id': str},
        low_memory=False,
    )
    logger.info(f"Loaded {file_path.name}: {len(df):,} rows, {len(df.columns)} columns")
    return df


def save_table(df: pd.DataFrame, output_path: Path) -> Path:
    """Write a summary table with the separator its suffix implies"""
    sep = _table_separator(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_path, sep=sep, index=False)
    logger.info(f"Saved {len(df):,} rows to {output_path}")
    return output_path
