"""Prefix/delimiter grouping for backends without native listing."""

from collections.abc import Iterable

from bucketfs.protocols.object_store import ListResult, ObjectMetadata


def group_listing(
    objects: Iterable[ObjectMetadata],
    prefix: str,
    delimiter: str | None = None,
) -> ListResult:
    """Build a ListResult the way S3 ListObjectsV2 does.

    Keys not starting with ``prefix`` are skipped. With a delimiter, any
    key whose remainder after the prefix contains the delimiter is folded
    into a common prefix ending at the first delimiter.
    """
    result = ListResult()
    seen_prefixes: set[str] = set()

    for metadata in sorted(objects, key=lambda m: m.key):
        if not metadata.key.startswith(prefix):
            continue
        if delimiter:
            remainder = metadata.key[len(prefix):]
            index = remainder.find(delimiter)
            if index >= 0:
                common = prefix + remainder[: index + len(delimiter)]
                if common not in seen_prefixes:
                    seen_prefixes.add(common)
                    result.common_prefixes.append(common)
                continue
        result.objects.append(metadata)

    return result
