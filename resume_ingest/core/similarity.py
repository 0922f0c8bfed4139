def string_similarity(a: str | None, b: str | None) -> float:
    """
    Symmetric similarity score in [0, 1] for short labels (company, title, school).

    Rules, first match wins:
      - equal after lowercasing and trimming -> 1.0
      - either side empty -> 0.0
      - one contains the other -> shorter length / longer length
      - otherwise Jaccard overlap of whitespace-separated word sets

    Examples:
      ("Google", "google ") -> 1.0
      ("Acme Corp", "Acme") -> 0.444...
      ("Data Analyst", "Senior Data Analyst") -> 0.631...
      ("Data Engineer", "Software Engineer") -> 0.333...
    """
    s1 = (a or "").strip().lower()
    s2 = (b or "").strip().lower()

    if s1 == s2:
        return 1.0
    if not s1 or not s2:
        return 0.0

    if s1 in s2 or s2 in s1:
        return min(len(s1), len(s2)) / max(len(s1), len(s2))

    words1 = set(s1.split())
    words2 = set(s2.split())
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


def jaccard_overlap(left: list[str] | None, right: list[str] | None) -> float:
    """Jaccard overlap of two string collections compared case-insensitively."""
    set1 = {s.strip().lower() for s in (left or []) if s and s.strip()}
    set2 = {s.strip().lower() for s in (right or []) if s and s.strip()}
    union = set1 | set2
    if not union:
        return 0.0
    return len(set1 & set2) / len(union)
