"""Candidate Enrollment Portal.

Backend for a skills-training enrollment desk: phone verification by
one-time passcode, identity-document OCR with heuristic field parsing,
and duplicate-checked candidate registration.
"""
