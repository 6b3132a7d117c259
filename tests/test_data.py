"""Tests for price history structures and CSV loading."""

from datetime import date

import pytest

from stockpredictor.data import (
    CompaniesPriceData,
    Company,
    CompanyPriceData,
    PriceDataItem,
    gather_companies,
    load_price_csv,
)

HEADER = 'Date,Low,Open,Volume,High,Close,Adjusted Close\n'


def _write(path, body):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(HEADER + body)
    return path


class TestLoadPriceCsv:
    def test_parses_and_filters(self, tmp_path):
        path = _write(
            tmp_path / 'ACME.csv',
            '29-12-2023,9.0,9.1,500,9.5,9.2,9.2\n'
            '02-01-2024,9.5,10,1000.0,10.5,10.2,10.1\n'
            '03-01-2024,,,,,,\n'
            '2024-1-4,9.5,10,1000,10.5,10.3,10.3\n'
            '05-01-2024,9.6,10.1,1200,10.6,10.4,10.4\n'
            '08-01-2024,9.6,abc,1200,10.6,10.4,10.4\n'
            '01-03-2024,9.6,10.1,1200,10.6,10.4,10.4\n',
        )

        rows = load_price_csv(path, date(2024, 1, 1), date(2024, 1, 31), 'ACME')

        assert [row.date for row in rows] == [date(2024, 1, 2), date(2024, 1, 5)]
        first = rows[0]
        assert (first.low, first.open, first.high, first.close, first.adjusted_close) == (9.5, 10.0, 10.5, 10.2, 10.1)
        assert first.volume == 1000

    def test_end_date_is_inclusive(self, tmp_path):
        path = _write(tmp_path / 'ACME.csv', '31-01-2024,1,1,1,1,1,1\n')
        assert len(load_price_csv(path, date(2024, 1, 1), date(2024, 1, 31), 'ACME')) == 1

    def test_duplicate_dates_keep_one_row(self, tmp_path):
        path = _write(tmp_path / 'ACME.csv', '02-01-2024,1,1,1,1,1,1\n02-01-2024,2,2,2,2,2,2\n')
        rows = load_price_csv(path, date(2024, 1, 1), date(2024, 1, 31), 'ACME')
        assert len(rows) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_price_csv(tmp_path / 'nope.csv', date(2024, 1, 1), date(2024, 1, 31), 'NOPE')

    def test_missing_columns(self, tmp_path):
        path = tmp_path / 'BAD.csv'
        path.write_text('Date,Close\n02-01-2024,1\n')
        with pytest.raises(ValueError):
            load_price_csv(path, date(2024, 1, 1), date(2024, 1, 31), 'BAD')

    def test_refresh_reads_exchange_layout(self, tmp_path):
        _write(tmp_path / 'nyse' / 'csv' / 'ACME.csv', '02-01-2024,1,1,1,1,3.5,1\n')
        company = CompanyPriceData(symbol='ACME', exchange='nyse')

        company.refresh_data(date(2024, 1, 1), date(2024, 1, 31), tmp_path)

        assert company.close_on(date(2024, 1, 2)) == 3.5


class TestCompanyPriceData:
    def test_rows_are_sorted(self):
        rows = [
            PriceDataItem(date(2024, 1, 3), 1.0, 1.0, 1.0, 2.0, 1, 1.0),
            PriceDataItem(date(2024, 1, 2), 1.0, 1.0, 1.0, 1.0, 1, 1.0),
        ]
        company = CompanyPriceData('ACME', 'nyse', rows)

        assert company.closes() == [1.0, 2.0]
        assert company.last_date == date(2024, 1, 3)

    def test_duplicate_dates_rejected(self):
        row = PriceDataItem(date(2024, 1, 2), 1.0, 1.0, 1.0, 1.0, 1, 1.0)
        with pytest.raises(ValueError):
            CompanyPriceData('ACME', 'nyse', [row, row])

    def test_lookups(self, make_company):
        company = make_company('ACME', [10.0, 11.0, 12.0, 13.0, 14.0, 15.0])  # Mon 1 Jan .. Mon 8 Jan

        assert company.index_of(date(2024, 1, 3)) == 2
        assert company.index_of(date(2024, 1, 6)) is None
        assert company.first_index_on_or_after(date(2024, 1, 6)) == 5
        assert company.first_index_on_or_after(date(2024, 1, 9)) is None
        assert company.close_on(date(2024, 1, 8)) == 15.0

    def test_last_n_days(self, make_company):
        company = make_company('ACME', [float(i) for i in range(10)])
        reference = company.price_data[4].date

        rows = company.last_n_days(reference, 4)

        assert [row.close for row in rows] == [0.0, 1.0, 2.0, 3.0]
        assert company.last_n_days(company.price_data[3].date, 4) is None
        assert company.last_n_days(company.price_data[9].date, 4) is None


class TestCompaniesPriceData:
    def test_push_skips_blank_symbol(self, make_company):
        companies = CompaniesPriceData()
        companies.push(make_company('', []))
        companies.push(make_company('ACME', []))
        assert [c.symbol for c in companies] == ['ACME']

    def test_find_by_identity(self, make_company):
        companies = CompaniesPriceData([make_company('ACME', [], exchange='nyse')])

        assert companies.find(Company('ACME', 'nyse')) is companies.companies[0]
        assert companies.find(Company('ACME', 'nasdaq')) is None

    def test_gather_all_expands_directory(self, tmp_path):
        for symbol in ('ZZZ', 'AAA'):
            _write(tmp_path / 'nasdaq' / 'csv' / f'{symbol}.csv', '')

        companies = gather_companies(['IGNORED', 'all', 'LATER'], 'nasdaq', tmp_path)

        assert [c.symbol for c in companies] == ['AAA', 'ZZZ']

    def test_gather_named_symbols(self, tmp_path):
        companies = gather_companies(['MSFT', 'AAPL'], 'nasdaq', tmp_path)
        assert [str(c.company()) for c in companies] == ['nasdaq:MSFT', 'nasdaq:AAPL']
