# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Basic filesystem operations on a bucket.

Runs against the in-memory store by default. Pass a bucket name to run
against a real S3-compatible service configured through BUCKETFS_* variables:

    python examples/basic_operations.py my-bucket
"""
import sys

from bucketfs import FileSystem, InMemoryObjectStore

def main():
    if len(sys.argv) > 1:
        fs = FileSystem.from_session(sys.argv[1])
    else:
        fs = FileSystem(InMemoryObjectStore(buckets=("example-bucket",)), "example-bucket")

    # Create a directory tree
    fs.mkdir_all("reports/2025/q1")
    print("Created reports/2025/q1")

    # Write a file; it is uploaded when the handle closes
    with fs.create("reports/2025/q1/summary.txt") as f:
        f.write_string("revenue: 100\n")
        f.write_string("costs: 60\n")
    print("Uploaded reports/2025/q1/summary.txt")

    # Get file metadata
    info = fs.stat("reports/2025/q1/summary.txt")
    print(f"File size: {info.size} bytes")
    print(f"Last modified: {info.mod_time}")

    # Read it back, sequentially and at an offset
    with fs.open("reports/2025/q1/summary.txt") as f:
        print(f"Downloaded content: {f.read().decode()!r}")
        print(f"Bytes 9-12: {f.read_at(3, 9).decode()!r}")

    # Walk the tree
    print("Objects under reports/:")
    fs.walk("reports", lambda path, info, error: print(f"- {path} ({info.size} bytes)") if error is None else print(f"! {error}"))

    # Rename, then remove everything
    fs.rename("reports/2025/q1/summary.txt", "reports/2025/q1/final.txt")
    print(f"Entries in q1: {fs.listdir('reports/2025/q1')}")
    fs.remove_all("reports")
    print(f"reports still exists: {fs.is_dir('reports')}")

if __name__ == "__main__":
    main()
