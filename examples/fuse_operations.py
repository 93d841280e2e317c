# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
'''
This example demonstrates reading and writing files in a bucket through a
bucketfs FUSE mount. Files written through the mount are uploaded when they
are closed.

Setup:
    # Install bucketfs
    pip install bucketfs

    # Install FUSE on your system
    # On Ubuntu/Debian:
    sudo apt-get install fuse

    # On CentOS/RHEL:
    sudo yum install fuse

    # On macOS (using Homebrew):
    brew install macfuse

    # Configure credentials (or use an AWS profile)
    export BUCKETFS_ACCESS_KEY_ID=your_access_key_id
    export BUCKETFS_SECRET_ACCESS_KEY=your_secret_access_key
    # For S3-compatible services
    export BUCKETFS_ENDPOINT_URL=http://localhost:9000

    # Create a mount point
    mkdir -p /mnt/my-bucket

Usage:
    # Mount a bucket
    python -m bucketfs.fuse <bucket> <mountpoint>

    # Example
    python -m bucketfs.fuse my-bucket /mnt/my-bucket

    # Unmount when done
    # On Linux
    fusermount -u /mnt/my-bucket

    # On macOS
    umount /mnt/my-bucket

Troubleshooting:
    # Enable debug logging
    export BUCKETFS_LOG_LEVEL=DEBUG
    python -m bucketfs.fuse <bucket> <mountpoint>

    # Run with sudo if permission issues occur
    sudo python -m bucketfs.fuse <bucket> <mountpoint>

    # Check if FUSE is properly installed
    which fusermount  # Linux
    which mount_macfuse  # macOS

'''
import os
import sys

def main():
    if len(sys.argv) != 3:
        print("Usage: python fuse_operations.py <bucket> <mountpoint>")
        sys.exit(1)

    mountpoint = sys.argv[2]
    notes_dir = os.path.join(mountpoint, "notes")
    draft = os.path.join(notes_dir, "draft.txt")
    final = os.path.join(notes_dir, "final.txt")

    # Directories are zero-byte marker objects
    os.makedirs(notes_dir, exist_ok=True)
    print(f"Directory ready: {notes_dir}")

    # Several writes, one upload when the file is closed
    with open(draft, 'w') as f:
        for i in range(3):
            f.write(f"line {i}\n")
    print(f"File written and uploaded on close: {draft}")

    with open(draft, 'r') as f:
        print(f"Content read from file: {f.read()!r}")

    # Rename is a copy followed by a delete in the bucket
    os.rename(draft, final)
    print(f"Entries in {notes_dir}: {sorted(os.listdir(notes_dir))}")

    os.remove(final)
    os.rmdir(notes_dir)
    print(f"Removed {notes_dir}")

if __name__ == '__main__':
    main()
