import unicodedata


def normalize_name(s: str) -> str:
    if not isinstance(s, str):
        s = str(s)
    s = s.strip()
    s = unicodedata.normalize('NFKD', s)
    s = ''.join(c for c in s if not unicodedata.combining(c))
    s = s.casefold()
    # Map gender symbols to letters so "Nidoran F" and "nidoran♀" agree
    s = s.replace('♂', 'm').replace('♀', 'f')
    return s


def derive_label(identifier: str, separator: str = '-') -> str:
    """Turn a PokeAPI name into a display label: "mr-mime" -> "Mr Mime".

    Empty segments (from doubled separators) are dropped.
    """
    words = [w for w in (identifier or '').split(separator) if w]
    return ' '.join(w[:1].upper() + w[1:] for w in words)


def label_sort_key(label: str):
    # Accent/case-insensitive first, raw label breaks ties so the order is total
    return normalize_name(label), label


def matches_query(label: str, query: str) -> bool:
    q = normalize_name(query)
    if not q:
        return True
    return q in normalize_name(label)
