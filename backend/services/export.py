import csv
import io
from datetime import date
from typing import Any, Iterable

EXPORT_COLUMNS = [
    'Student Name',
    'Student Email',
    'Course Name',
    'Course Code',
    'Instructor',
    'Rating',
    'Message',
    'Submitted Date',
]


def export_filename(today: date) -> str:
    return f'feedback-export-{today.isoformat()}.csv'


def feedback_csv(rows: Iterable[dict[str, Any]]) -> bytes:
    """Encode joined feedback rows (see ``queries.join_feedback``) as CSV."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    for row in rows:
        student = row['student']
        course = row['course']
        writer.writerow(
            {
                'Student Name': student['name'],
                'Student Email': student['email'],
                'Course Name': course['name'],
                'Course Code': course['code'],
                'Instructor': course.get('instructor') or 'N/A',
                'Rating': row['rating'],
                'Message': row['message'],
                'Submitted Date': row['created_at'].date().isoformat(),
            }
        )
    return buffer.getvalue().encode('utf-8')
