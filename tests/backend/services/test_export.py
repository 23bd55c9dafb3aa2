import csv
import io
from datetime import date, datetime

from backend.services.export import EXPORT_COLUMNS, export_filename, feedback_csv


def _row(instructor, message='Great course, would take again.'):
    return {
        'id': 1,
        'rating': 5,
        'message': message,
        'created_at': datetime(2024, 2, 29, 23, 59, 0),
        'updated_at': datetime(2024, 2, 29, 23, 59, 0),
        'student': {'id': 2, 'name': 'Jane Smith', 'email': 'jane@example.com', 'profile_picture_url': None},
        'course': {'id': 3, 'name': 'Compilers', 'code': 'CS450', 'instructor': instructor, 'credits': 4},
    }


def test_export_filename() -> None:
    assert export_filename(date(2024, 3, 1)) == 'feedback-export-2024-03-01.csv'


def test_feedback_csv_writes_header_and_rows() -> None:
    content = feedback_csv([_row('Dr. Grace Hopper'), _row(None, message='Fine, but "long", with commas')])

    rows = list(csv.reader(io.StringIO(content.decode('utf-8'))))

    assert rows[0] == EXPORT_COLUMNS
    assert rows[1] == [
        'Jane Smith',
        'jane@example.com',
        'Compilers',
        'CS450',
        'Dr. Grace Hopper',
        '5',
        'Great course, would take again.',
        '2024-02-29',
    ]
    assert rows[2][4] == 'N/A'
    assert rows[2][6] == 'Fine, but "long", with commas'


def test_feedback_csv_without_rows_has_only_header() -> None:
    assert feedback_csv([]).decode('utf-8').splitlines() == [','.join(EXPORT_COLUMNS)]
