"""공용 유틸리티 패키지 — 로깅, 예외, 비밀번호 해싱.

Shared utilities: logging setup, domain exceptions and password hashing.
"""
