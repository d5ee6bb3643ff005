"""
Snapshots module (draft/publish workflow).

- Administrators edit the draft; TV displays and users read the published copy
- Publish copies draft over published, discard copies published over draft
- Draft status compares the two structurally, never by serialized text
"""
