"""미장플라스 주방 서버 패키지.

Mise en place kitchen server: inventory consumption, shift lifecycle and
task gamification for a small pizza kitchen.
"""
