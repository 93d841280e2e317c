# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Upload a large file in parts.

    python examples/multipart_upload.py my-bucket /path/to/large.file
"""
import os
import sys

from bucketfs import FileSystem, MIN_PART_SIZE, StoreOperationFailed

def main():
    if len(sys.argv) != 3:
        print("Usage: python multipart_upload.py <bucket> <file>")
        sys.exit(1)

    bucket, path = sys.argv[1], sys.argv[2]
    fs = FileSystem.from_session(bucket)
    key = f"uploads/{os.path.basename(path)}"

    try:
        # Completes on success, aborts if anything below raises
        with fs.new_multipart_upload(key) as upload:
            upload.set_part_size(max(MIN_PART_SIZE, 16 * 1024 * 1024))
            with open(path, "rb") as source:
                parts = upload.upload_from_stream(source)
        print(f"Uploaded {path} to {key} in {parts} parts")
    except StoreOperationFailed as e:
        print(f"Upload failed: {e}")
        sys.exit(1)

    info = fs.stat(key)
    print(f"Stored size: {info.size} bytes")

if __name__ == "__main__":
    main()
