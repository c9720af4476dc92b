"""Prompt for semantically merging user profile facts."""

PROFILE_MERGE_PROMPT = """You maintain a user profile made of atomic facts (one self-contained statement each).
Merge the new facts into the existing profile.

## Existing Facts
{existing_items}

## New Facts
{incoming_items}

## Rules
- Remove facts that are semantically duplicated; keep the most informative wording.
- When a new fact updates or contradicts an existing one, keep the newer version.
- Keep unrelated facts unchanged. Never invent facts.
- Keep the language of the original facts.

## Output Format
Return ONLY a JSON object, no other text:
{{
  "items": ["fact 1", "fact 2"],
  "summary": "short description of what changed"
}}
"""
