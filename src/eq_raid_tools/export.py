"""
Raid Session Export

Writes detected raid sessions to an Excel workbook with one sheet each for
sessions, attendance and loot, so officers can review a parse in a
spreadsheet before it is submitted.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional

try:
    import pandas as pd
    import openpyxl
except ImportError:
    raise ImportError("Excel export requires pandas and openpyxl. Install with: pip install pandas openpyxl")

from .log.models import RaidSession

__all__ = ['sessions_to_frames', 'write_sessions_excel']

logger = logging.getLogger(__name__)

SHEET_SESSIONS = 'Sessions'
SHEET_ATTENDANCE = 'Attendance'
SHEET_LOOT = 'Loot'


def _excel_time(instant: Optional[datetime]) -> Optional[datetime]:
    # Excel cells cannot hold timezone-aware values; store UTC wall-clock time
    if instant is None or instant.tzinfo is None:
        return instant
    return instant.astimezone(timezone.utc).replace(tzinfo=None)


def sessions_to_frames(sessions: List[RaidSession]) -> Dict[str, pd.DataFrame]:
    """
    Flatten sessions into DataFrames keyed by sheet name.

    Attendance and loot rows carry the session date so the sheets can be
    filtered or joined back to their session.
    """
    session_rows = []
    attendance_rows = []
    loot_rows = []

    for session in sessions:
        session_rows.append({
            'Date': session.date,
            'Day': session.day_name,
            'Zones': ', '.join(session.zones),
            'Attendance': len(session.attendance),
            'Loot': len(session.loot),
            'First Seen (UTC)': _excel_time(session.first_seen),
            'Last Seen (UTC)': _excel_time(session.last_seen),
        })
        for record in session.attendance:
            attendance_rows.append({
                'Date': session.date,
                'Name': record.name,
                'Level': record.level,
                'Class': record.char_class,
                'Race': record.race,
                'Guild': record.guild,
                'First Seen (UTC)': _excel_time(record.first_seen),
                'Last Seen (UTC)': _excel_time(record.last_seen),
            })
        for event in session.loot:
            loot_rows.append({
                'Date': session.date,
                'Player': event.player_name,
                'Item': event.item_name,
                'Zone': event.zone,
                'Looted At (UTC)': _excel_time(event.timestamp),
            })

    frames = {
        SHEET_SESSIONS: pd.DataFrame(session_rows, columns=[
            'Date', 'Day', 'Zones', 'Attendance', 'Loot', 'First Seen (UTC)', 'Last Seen (UTC)']),
        SHEET_ATTENDANCE: pd.DataFrame(attendance_rows, columns=[
            'Date', 'Name', 'Level', 'Class', 'Race', 'Guild', 'First Seen (UTC)', 'Last Seen (UTC)']),
        SHEET_LOOT: pd.DataFrame(loot_rows, columns=['Date', 'Player', 'Item', 'Zone', 'Looted At (UTC)']),
    }
    frames[SHEET_ATTENDANCE]['Level'] = pd.to_numeric(frames[SHEET_ATTENDANCE]['Level'], errors='coerce')
    return frames


def write_sessions_excel(sessions: List[RaidSession], excel_file: str) -> str:
    """
    Write sessions to an Excel workbook.

    Args:
        sessions: Sessions from auto_parse_log.
        excel_file: Path to the output .xlsx file.

    Returns:
        The absolute path of the written workbook.
    """
    excel_path = os.path.abspath(excel_file)
    parent = os.path.dirname(excel_path)
    if parent:
        os.makedirs(parent, exist_ok=True)

    frames = sessions_to_frames(sessions)

    with pd.ExcelWriter(excel_path, engine='openpyxl') as writer:
        for sheet_name, df in frames.items():
            df.to_excel(writer, sheet_name=sheet_name, index=False)
            worksheet = writer.sheets[sheet_name]

            # Size columns to their longest value
            for idx, column in enumerate(df.columns, 1):
                letter = openpyxl.utils.get_column_letter(idx)
                longest = max([len(str(column))] + [len(str(v)) for v in df[column].tolist()])
                worksheet.column_dimensions[letter].width = min(longest + 2, 60)

    logger.info(f"Exported {len(sessions)} session(s) to {excel_path}")
    return excel_path
