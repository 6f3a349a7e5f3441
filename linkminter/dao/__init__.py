"""Data access layer for link records.

Backends live in subpackages (`linkminter.dao.sqlite`, `linkminter.dao.redis`)
and share the `linkminter.dao.base.LinkBaseDAO` contract. Use
`linkminter.dao.factory.build_link_dao()` to construct the configured one.
"""
