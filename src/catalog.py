"""
Loading the job catalog and exporting final standings.
"""
import csv
import io
from typing import List, Optional, Sequence

import yaml

from core.exceptions import CatalogError
from core.models import Candidate

EXPORT_FORMATS = ('yaml', 'csv')
EXPORT_COLUMNS = ['place', 'id', 'title', 'description']


def load_candidates(file_path) -> List[Candidate]:
    """
    Load jobs from a YAML catalog.

    Accepts either {'jobs': [...]} or a bare list; each entry needs an `id` and a
    `title`, `description` is optional.
    """
    try:
        with open(file_path, mode='r', encoding='utf-8') as file:
            data = yaml.safe_load(file)
    except OSError as e:
        raise CatalogError(f"Cannot read catalog {file_path}: {e}") from e
    except yaml.YAMLError as e:
        raise CatalogError(f"Error parsing YAML in {file_path}: {e}") from e

    if isinstance(data, dict):
        data = data.get('jobs')
    if not isinstance(data, list):
        raise CatalogError(f"Catalog {file_path} has no list of jobs")

    candidates = []
    seen_ids = set()
    for index, entry in enumerate(data):
        if not isinstance(entry, dict) or 'id' not in entry or 'title' not in entry:
            raise CatalogError(f"Entry {index} in {file_path} needs an id and a title")
        try:
            job_id = int(entry['id'])
        except (TypeError, ValueError) as e:
            raise CatalogError(f"Entry {index} in {file_path} has a non-integer id: {entry['id']!r}") from e
        if job_id in seen_ids:
            raise CatalogError(f"Duplicate job id {job_id} in {file_path}")
        seen_ids.add(job_id)
        candidates.append(Candidate(
            id=job_id,
            title=str(entry['title']).strip(),
            description=str(entry.get('description') or '').strip(),
        ))
    return candidates


def _result_rows(winners: Sequence[Candidate]) -> List[dict]:
    return [
        {'place': place, 'id': job.id, 'title': job.title, 'description': job.description}
        for place, job in enumerate(winners, start=1)
    ]


def export_results(winners: Sequence[Candidate], label: Optional[str] = None, fmt: str = 'yaml') -> str:
    """Serialize the final top jobs, best first, as YAML or CSV."""
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format {fmt!r}, expected one of {', '.join(EXPORT_FORMATS)}")

    rows = _result_rows(winners)
    if fmt == 'yaml':
        return yaml.dump({'label': label, 'results': rows}, default_flow_style=False,
                         allow_unicode=True, sort_keys=False)

    output = io.StringIO()
    if label:
        output.write(f"# {label}\n")
    writer = csv.DictWriter(output, fieldnames=EXPORT_COLUMNS, lineterminator='\n')
    writer.writeheader()
    writer.writerows(rows)
    return output.getvalue()
