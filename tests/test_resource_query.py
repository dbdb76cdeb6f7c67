import os
import unittest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from sqlalchemy import Integer, String, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from crud_service.core.errors import BadResourceRequestError
from crud_service.models.cidade import Cidade
from crud_service.models.estado import Estado
from crud_service.services.resource_query import (
    apply_filter_predicates,
    apply_sort,
    build_filter_predicates,
    coerce_column_value,
    coerce_primary_key,
    parse_filter_payload,
    parse_sort,
)


class _Base(DeclarativeBase):
    pass


class _Produto(_Base):
    __tablename__ = "_rq_produtos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nome: Mapped[str] = mapped_column(String(50))
    categoria_id: Mapped[int] = mapped_column(Integer)
    estoque: Mapped[int] = mapped_column(Integer)


class FilterPredicateTests(unittest.TestCase):
    def test_foreign_key_fields_use_equality(self):
        predicates = build_filter_predicates({"estado_id": "3", "categoria_id": 7})
        self.assertEqual([(p.field, p.op, p.value) for p in predicates], [("estado_id", "=", "3"), ("categoria_id", "=", 7)])

    def test_other_fields_use_upper_cased_like(self):
        predicates = build_filter_predicates({"nome": "são paulo", "codigo": 12})
        self.assertEqual(
            [(p.field, p.op, p.value) for p in predicates],
            [("nome", "like", "SÃO PAULO"), ("codigo", "like", "12")],
        )

    def test_empty_and_nested_values_are_skipped(self):
        predicates = build_filter_predicates(
            {
                "nome": "",
                "sigla": "   ",
                "observacao": None,
                "estado": {"nome": "Parana"},
                "tags": ["a", "b"],
                "estado_id": "",
            }
        )
        self.assertEqual(predicates, [])

    def test_field_ending_in_id_without_underscore_is_a_text_search(self):
        predicates = build_filter_predicates({"paid": "sim"})
        self.assertEqual(predicates[0].op, "like")


class FilterPayloadTests(unittest.TestCase):
    def test_mapping_is_used_as_is(self):
        self.assertEqual(parse_filter_payload({"nome": "x"}), {"nome": "x"})

    def test_json_object_is_decoded(self):
        self.assertEqual(parse_filter_payload('{"nome": "x", "estado_id": 2}'), {"nome": "x", "estado_id": 2})

    def test_invalid_or_non_object_json_reads_as_no_filter(self):
        self.assertEqual(parse_filter_payload("{nome"), {})
        self.assertEqual(parse_filter_payload("[1, 2]"), {})
        self.assertEqual(parse_filter_payload(""), {})
        self.assertEqual(parse_filter_payload(None), {})


class SortTests(unittest.TestCase):
    def test_default_is_id_descending(self):
        sort = parse_sort(None)
        self.assertEqual((sort.field, sort.dir), ("id", "desc"))

    def test_field_and_direction(self):
        sort = parse_sort("nome|ASC")
        self.assertEqual((sort.field, sort.dir), ("nome", "asc"))

    def test_missing_direction_is_ascending(self):
        self.assertEqual(parse_sort("nome").dir, "asc")

    def test_invalid_direction_or_field_raises_400(self):
        with self.assertRaises(BadResourceRequestError) as ctx:
            parse_sort("nome|sideways")
        self.assertEqual(ctx.exception.status_code, 400)
        with self.assertRaises(BadResourceRequestError):
            parse_sort("|asc")


class CoercionTests(unittest.TestCase):
    def test_numbers_and_booleans(self):
        self.assertEqual(coerce_column_value(Cidade.estado_id, "7"), 7)
        self.assertTrue(coerce_column_value(Estado.padrao, "sim"))
        self.assertFalse(coerce_column_value(Estado.padrao, "0"))

    def test_bad_number_raises_400(self):
        with self.assertRaises(BadResourceRequestError) as ctx:
            coerce_column_value(Cidade.estado_id, "abc")
        self.assertEqual(ctx.exception.status_code, 400)
        with self.assertRaises(BadResourceRequestError):
            coerce_column_value(Cidade.estado_id, "1.5")

    def test_text_is_left_as_is(self):
        self.assertEqual(coerce_column_value(Cidade.nome, "Campinas"), "Campinas")

    def test_primary_key(self):
        self.assertEqual(coerce_primary_key(Estado, "5"), 5)
        with self.assertRaises(BadResourceRequestError):
            coerce_primary_key(Estado, "cinco")


class ApplyPredicatesTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine("sqlite+pysqlite:///:memory:")
        _Base.metadata.create_all(cls.engine)
        with Session(cls.engine) as session:
            session.add_all(
                [
                    _Produto(id=1, nome="Caneta azul", categoria_id=1, estoque=10),
                    _Produto(id=2, nome="Caneta preta", categoria_id=1, estoque=0),
                    _Produto(id=3, nome="Caderno 100%", categoria_id=2, estoque=5),
                    _Produto(id=4, nome="Borracha", categoria_id=2, estoque=15),
                ]
            )
            session.commit()

    @classmethod
    def tearDownClass(cls):
        cls.engine.dispose()

    def _ids(self, filters, sort="id|asc"):
        with Session(self.engine) as session:
            q = session.query(_Produto)
            q = apply_filter_predicates(q, _Produto, build_filter_predicates(filters))
            q = apply_sort(q, _Produto, parse_sort(sort))
            return [row.id for row in q.all()]

    def test_like_is_case_insensitive_substring(self):
        self.assertEqual(self._ids({"nome": "CANETA"}), [1, 2])
        self.assertEqual(self._ids({"nome": "eta pr"}), [2])

    def test_like_on_numeric_column(self):
        self.assertEqual(self._ids({"estoque": "5"}), [3, 4])

    def test_like_wildcards_in_value_are_literal(self):
        self.assertEqual(self._ids({"nome": "%"}), [3])
        self.assertEqual(self._ids({"nome": "_"}), [])

    def test_foreign_key_filter_is_exact(self):
        self.assertEqual(self._ids({"categoria_id": "2"}), [3, 4])

    def test_rendered_sql_uses_equality_for_foreign_keys_and_like_otherwise(self):
        with Session(self.engine) as session:
            q = apply_filter_predicates(
                session.query(_Produto),
                _Produto,
                build_filter_predicates({"categoria_id": "1", "nome": "cad"}),
            )
            sql = str(q.statement).lower()
        self.assertIn("_rq_produtos.categoria_id = ", sql)
        self.assertIn("upper(_rq_produtos.nome) like", sql)
        self.assertNotIn("categoria_id) like", sql)

    def test_unknown_filter_fields_are_ignored(self):
        self.assertEqual(self._ids({"inexistente": "x", "nome": "borr"}), [4])

    def test_sort_descending_and_unknown_sort_field(self):
        self.assertEqual(self._ids({}, sort="estoque|desc"), [4, 1, 3, 2])
        with self.assertRaises(BadResourceRequestError):
            self._ids({}, sort="inexistente|asc")


if __name__ == "__main__":
    unittest.main()
