"""Solo RPG notation parser.

Pipeline for one campaign document:
  1. Segmenter   front matter, title, inline + linked sessions, scenes,
                 fenced notation blocks (segments.py).
  2. Classifier  each line inside a fence → one typed element (classifier.py).
  3. Extractor   bracketed tags in each element's text → mentions (tags.py).
  4. Merge       mentions in document order → one record per entity (merge.py).

Progress helpers (progress.py) classify clocks, tracks, events and timers.
"""

from .classifier import classify_line, determine_success, parse_code_block  # noqa: F401
from .core import parse_campaign_document  # noqa: F401
from .merge import (  # noqa: F401
    apply_tag_diff,
    collect_mentions,
    merge_mentions,
    scannable_text,
)
from .progress import (  # noqa: F401
    NEAR_COMPLETE_THRESHOLD,
    TIMER_URGENT_THRESHOLD,
    calculate_progress,
    is_complete,
    is_near_complete,
    is_timer_urgent,
    progress_status,
)
from .segments import (  # noqa: F401
    extract_front_matter,
    extract_session_links,
    extract_title,
    looks_like_campaign,
    parse_scene_content,
    parse_scenes,
    parse_session_metadata,
    parse_sessions,
)
from .tags import (  # noqa: F401
    extract_references,
    extract_tags,
    identity_key,
    is_reference,
    scan_mentions,
)
