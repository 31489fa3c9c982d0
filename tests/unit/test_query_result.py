"""Tests for QueryResult wrapper class."""

from unittest.mock import Mock
import pandas as pd


def _cursor(rows, columns=("id", "name")):
    """Mock cursor returning dict rows in batches"""
    mock_cursor = Mock()
    mock_cursor.description = [(column, None, None, None, None, None, None) for column in columns]
    mock_cursor.fetchall.return_value = list(rows)
    batches = [list(rows[i:i + 2]) for i in range(0, len(rows), 2)] + [[]]
    mock_cursor.fetchmany.side_effect = batches
    return mock_cursor


class TestQueryResult:
    """Tests for QueryResult class."""

    def test_query_result_properties(self):
        """Test that QueryResult exposes cursor properties."""
        from sqlitelib.primitives.result import QueryResult

        mock_cursor = _cursor([])
        mock_cursor.rowcount = 42
        mock_cursor.lastrowid = 7

        result = QueryResult(_cursor=mock_cursor, _sql="SELECT * FROM test_table")

        assert result.rowcount == 42
        assert result.lastrowid == 7
        assert result.sql == "SELECT * FROM test_table"
        assert len(result.description) == 2
        assert result.columns == ["id", "name"]

    def test_rowcount_none_becomes_minus_one(self):
        from sqlitelib.primitives.result import QueryResult

        mock_cursor = Mock(rowcount=None)

        assert QueryResult(_cursor=mock_cursor).rowcount == -1

    def test_columns_empty_without_description(self):
        from sqlitelib.primitives.result import QueryResult

        result = QueryResult(_cursor=Mock(description=None))

        assert result.columns == []

    def test_fetch_one_and_all(self):
        from sqlitelib.primitives.result import QueryResult

        mock_cursor = _cursor([{"id": 1, "name": "A"}])
        mock_cursor.fetchone.return_value = {"id": 1, "name": "A"}
        result = QueryResult(_cursor=mock_cursor)

        assert result.fetch_one() == {"id": 1, "name": "A"}
        assert result.fetch_all() == [{"id": 1, "name": "A"}]

    def test_fetch_all_empty(self):
        from sqlitelib.primitives.result import QueryResult

        mock_cursor = Mock()
        mock_cursor.fetchall.return_value = []

        assert QueryResult(_cursor=mock_cursor).fetch_all() == []

    def test_query_result_to_df(self):
        """Test to_df() with dict rows."""
        from sqlitelib.primitives.result import QueryResult

        rows = [{"id": 1, "name": "A"}, {"id": 2, "name": "B"}, {"id": 3, "name": "C"}]
        result = QueryResult(_cursor=_cursor(rows))

        df = result.to_df()

        assert isinstance(df, pd.DataFrame)
        assert list(df.columns) == ["id", "name"]
        assert df["name"].tolist() == ["A", "B", "C"]

    def test_to_df_with_tuple_rows(self):
        from sqlitelib.primitives.result import QueryResult

        result = QueryResult(_cursor=_cursor([(1, "A")]))

        df = result.to_df()

        assert df.to_dict("records") == [{"id": 1, "name": "A"}]

    def test_to_df_lowercases_columns(self):
        """Test to_df() lowercases columns on request."""
        from sqlitelib.primitives.result import QueryResult

        result = QueryResult(_cursor=_cursor([{"ID": 1, "Name": "A"}], columns=("ID", "Name")))

        df = result.to_df(lowercase_columns=True)

        assert list(df.columns) == ["id", "name"]

    def test_to_df_without_columns(self):
        """Test that statements returning no rows give an empty DataFrame."""
        from sqlitelib.primitives.result import QueryResult

        df = QueryResult(_cursor=Mock(description=None)).to_df()

        assert df.empty

    def test_fetch_batches(self):
        """Test that fetch_batches yields DataFrames until the cursor is drained."""
        from sqlitelib.primitives.result import QueryResult

        rows = [{"id": i, "name": str(i)} for i in range(5)]
        mock_cursor = _cursor(rows)
        result = QueryResult(_cursor=mock_cursor)

        batches = list(result.fetch_batches(batch_size=2))

        assert [len(batch) for batch in batches] == [2, 2, 1]
        assert pd.concat(batches)["id"].tolist() == [0, 1, 2, 3, 4]
        mock_cursor.fetchmany.assert_called_with(2)

    def test_repr(self):
        from sqlitelib.primitives.result import QueryResult

        result = QueryResult(_cursor=Mock(rowcount=3), _sql="DELETE FROM t")

        assert repr(result) == "QueryResult(sql='DELETE FROM t', rowcount=3)"
