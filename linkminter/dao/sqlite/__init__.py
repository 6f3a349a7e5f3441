from linkminter.dao.sqlite.mixins import SQLiteStoreMixin
from linkminter.dao.sqlite.link_sqlite_dao import LinkSQLiteDAO


__all__ = [
    'SQLiteStoreMixin',
    'LinkSQLiteDAO',
]
