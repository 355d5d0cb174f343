"""
CSV-backed fare tables.

Road transit tables (``puj.csv``, ``pub_aircon.csv``, ``pub_ordinary.csv``)
are distance bands with a regular and a discounted column. Rail tables come
either as one long file per system (``from_station,to_station,fare`` or
``...,sj_fare,sv_fare``) or as a station-by-station matrix pair
``<system>_sj.csv`` / ``<system>_sv.csv``. Station keys are normalized on
load so lookups only ever compare normalized names.
"""

import os
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from .interfaces import FareTableProvider
from ..exceptions import FareTableError
from ..logger import logger
from ..utils.fare_utils import normalize_station_name, parse_fare

DISTANCE_TABLES = ('puj', 'pub_aircon', 'pub_ordinary')
RAIL_FARE_SYSTEMS = ('lrt1', 'lrt2', 'mrt', 'pnr')

DISTANCE_COLUMNS = ['distance', 'regular_fare', 'discounted_fare']
_COLUMN_ALIASES = {
    'distance': 'distance',
    'distance_km': 'distance',
    'km': 'distance',
    'max_km': 'distance',
    'regular': 'regular_fare',
    'regular_fare': 'regular_fare',
    'discounted': 'discounted_fare',
    'discounted_fare': 'discounted_fare',
    'student': 'discounted_fare',
}

StationKey = Tuple[str, str]


def normalize_distance_table(df: pd.DataFrame, name: str = '') -> pd.DataFrame:
    """Rename known column aliases, coerce to numbers and sort ascending by distance"""
    renamed = df.rename(columns=lambda c: _COLUMN_ALIASES.get(str(c).strip().lower(), str(c).strip().lower()))
    missing = [c for c in ('distance', 'regular_fare') if c not in renamed.columns]
    if missing:
        raise FareTableError(f"Fare table {name or '<unnamed>'} is missing columns: {', '.join(missing)}")
    if 'discounted_fare' not in renamed.columns:
        renamed['discounted_fare'] = None

    table = renamed[DISTANCE_COLUMNS].copy()
    table['distance'] = pd.to_numeric(table['distance'], errors='coerce')
    table['regular_fare'] = table['regular_fare'].map(parse_fare)
    table['discounted_fare'] = table['discounted_fare'].map(parse_fare)
    dropped = int(table['distance'].isnull().sum())
    if dropped:
        logger.warning(f"Fare table {name}: dropped {dropped} rows without a distance")
    table = table.dropna(subset=['distance'])
    return table.sort_values('distance').reset_index(drop=True)


def _station_records_from_long(df: pd.DataFrame, system: str) -> Dict[StationKey, dict]:
    columns = {str(c).strip().lower(): c for c in df.columns}
    if 'from_station' not in columns or 'to_station' not in columns:
        raise FareTableError(f"Station fare table {system} needs from_station and to_station columns")
    if 'sj_fare' in columns and 'sv_fare' in columns:
        value_columns = ['sj_fare', 'sv_fare']
    elif 'fare' in columns:
        value_columns = ['fare']
    else:
        raise FareTableError(f"Station fare table {system} has neither fare nor sj_fare/sv_fare columns")

    frame = df.rename(columns={v: k for k, v in columns.items()})
    frame = frame[['from_station', 'to_station'] + value_columns].dropna(subset=['from_station', 'to_station'])
    frame['from_station'] = frame['from_station'].astype(str).map(normalize_station_name)
    frame['to_station'] = frame['to_station'].astype(str).map(normalize_station_name)
    frame = frame.drop_duplicates(subset=['from_station', 'to_station'], keep='first')
    return frame.set_index(['from_station', 'to_station']).to_dict('index')


def _stack_matrix(matrix: pd.DataFrame, value_name: str) -> pd.DataFrame:
    matrix = matrix.copy()
    matrix.index = [normalize_station_name(str(i)) for i in matrix.index]
    matrix.columns = [normalize_station_name(str(c)) for c in matrix.columns]
    long = matrix.stack().reset_index()
    long.columns = ['from_station', 'to_station', value_name]
    return long.drop_duplicates(subset=['from_station', 'to_station'], keep='first')


def _station_records_from_matrices(sj: pd.DataFrame, sv: Optional[pd.DataFrame]) -> Dict[StationKey, dict]:
    long = _stack_matrix(sj, 'sj_fare')
    if sv is None:
        long = long.rename(columns={'sj_fare': 'fare'})
    else:
        long = long.merge(_stack_matrix(sv, 'sv_fare'), on=['from_station', 'to_station'], how='left')
    return long.set_index(['from_station', 'to_station']).to_dict('index')


class FareTables(FareTableProvider):
    """Distance-band frames and normalized station-pair records"""

    def __init__(self, distance_tables: Optional[Dict[str, pd.DataFrame]] = None,
                 station_fares: Optional[Dict[str, Dict[StationKey, dict]]] = None):
        self.distance_tables: Dict[str, pd.DataFrame] = {
            name: normalize_distance_table(df, name) for name, df in (distance_tables or {}).items()
        }
        self.station_fares: Dict[str, Dict[StationKey, dict]] = station_fares or {}
        self.station_keys: Dict[str, set] = {
            system: {k for pair in records for k in pair} for system, records in self.station_fares.items()
        }

    @classmethod
    def from_directory(cls, fares_dir: str) -> 'FareTables':
        """Load every known fare file found in ``fares_dir``; absent files leave gaps, not errors"""
        logger.info(f"Loading fare data from {fares_dir}...")
        distance_tables = {}
        for name in DISTANCE_TABLES:
            path = os.path.join(fares_dir, f"{name}.csv")
            if not os.path.exists(path):
                logger.warning(f"Fare table not found: {path}")
                continue
            distance_tables[name] = cls._read_csv(path)

        station_fares = {}
        for system in RAIL_FARE_SYSTEMS:
            long_path = os.path.join(fares_dir, f"{system}.csv")
            sj_path = os.path.join(fares_dir, f"{system}_sj.csv")
            sv_path = os.path.join(fares_dir, f"{system}_sv.csv")
            if os.path.exists(long_path):
                station_fares[system] = _station_records_from_long(cls._read_csv(long_path), system)
            elif os.path.exists(sj_path):
                sv = cls._read_csv(sv_path, index_col=0) if os.path.exists(sv_path) else None
                station_fares[system] = _station_records_from_matrices(cls._read_csv(sj_path, index_col=0), sv)
            else:
                logger.warning(f"No station fare table for {system}")

        tables = cls(distance_tables, station_fares)
        logger.info(
            "Loaded fare data: " + ', '.join(
                [f"{n} ({len(df)} bands)" for n, df in tables.distance_tables.items()] +
                [f"{s} ({len(r)} pairs)" for s, r in tables.station_fares.items()]
            )
        )
        return tables

    @classmethod
    def from_records(cls, distance_rows: Optional[Dict[str, Iterable[dict]]] = None,
                     station_rows: Optional[Dict[str, Iterable[dict]]] = None) -> 'FareTables':
        """Build tables from plain dicts, e.g. ``{'puj': [{'distance': 5, 'regular': 13, 'discounted': 10}]}``"""
        distance_tables = {name: pd.DataFrame(list(rows)) for name, rows in (distance_rows or {}).items()}
        station_fares = {
            system: _station_records_from_long(pd.DataFrame(list(rows)), system)
            for system, rows in (station_rows or {}).items()
        }
        return cls(distance_tables, station_fares)

    @staticmethod
    def _read_csv(path: str, **kwargs) -> pd.DataFrame:
        try:
            return pd.read_csv(path, **kwargs)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise FareTableError(f"Failed to load fare table {path}: {e}") from e

    def distance_table(self, name: str) -> Optional[pd.DataFrame]:
        return self.distance_tables.get(name)

    def max_distance(self, name: str) -> Optional[float]:
        """Largest distance a table covers, None when the table is missing or empty"""
        table = self.distance_tables.get(name)
        if table is None or table.empty:
            return None
        return float(table['distance'].max())

    def knows_station(self, system: str, station_key: str) -> bool:
        return station_key in self.station_keys.get(system, set())

    def systems(self) -> List[str]:
        return list(self.station_fares)

    def lookup_station_fare(self, system: str, from_station: str, to_station: str) -> Optional[dict]:
        records = self.station_fares.get(system)
        if not records:
            return None
        row = records.get((from_station, to_station))
        return dict(row) if row is not None else None
