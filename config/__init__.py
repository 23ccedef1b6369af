# PyMySQL stands in for mysqlclient when DB_ENGINE=mysql
try:
    import pymysql
    pymysql.version_info = (2, 2, 7, "final", 0)
    pymysql.install_as_MySQLdb()
except ImportError:
    pass
