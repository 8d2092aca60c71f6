import pytest

from ..associations import BelongsTo, HasMany, HasOne
from ..base import Resource
from ..formats import JSONFormat
from . import resources


class Bare(Resource):
    class Meta:
        abstract = True
        prefix = ""
        format = JSONFormat(extension=None)


class Lawyer(Bare):
    class Meta:
        associations = [HasOne("headshot"), HasMany("addresses")]


class Doctor(Bare):
    pass


class Headshot(Bare):
    class Meta:
        singleton = True
        associations = [BelongsTo("lawyer")]


class Address(Bare):
    class Meta:
        associations = [BelongsTo("lawyer"), BelongsTo("doctor"), HasMany("phones")]


class Phone(Bare):
    class Meta:
        associations = [BelongsTo("address")]


class Account(Bare):
    class Meta:
        singleton = True


class Setting(Bare):
    class Meta:
        associations = [BelongsTo("account")]


class Chicken(Bare):
    class Meta:
        associations = [BelongsTo("egg")]


class Egg(Bare):
    class Meta:
        associations = [BelongsTo("chicken")]


class Orphan(Bare):
    class Meta:
        associations = [BelongsTo("guardian")]


class Firm(Bare):
    class Meta:
        prefix = "/firms/:firm_id/"


class TestPaths:
    def test_collection_path_without_parent_ids(self):
        assert Lawyer.collection_path({}) == "lawyers"
        assert Address.collection_path({}) == "addresses"

    def test_collection_path(self):
        assert Address.collection_path({"lawyer_id": 2}) == "lawyers/2/addresses"

    def test_element_path(self):
        assert Address.element_path(3, {"lawyer_id": 2}) == "lawyers/2/addresses/3"
        assert Lawyer.element_path(1, {}) == "lawyers/1"

    def test_element_path_with_blank_parent_id(self):
        assert Address.element_path(3, {"lawyer_id": ""}) == "addresses/3"
        assert Address.element_path(3, {"lawyer_id": None}) == "addresses/3"

    def test_polymorphic_parent_follows_available_id(self):
        assert Address.element_path(3, {"doctor_id": 7}) == "doctors/7/addresses/3"

    def test_polymorphic_parent_prefers_first_declared(self):
        assert (
            Address.element_path(3, {"doctor_id": 7, "lawyer_id": 2})
            == "lawyers/2/addresses/3"
        )

    def test_transitive_path(self):
        assert (
            Phone.element_path(4, {"lawyer_id": 2, "address_id": 3})
            == "lawyers/2/addresses/3/phones/4"
        )
        assert Phone.collection_path({"address_id": 3}) == "addresses/3/phones"

    def test_transitive_path_skips_missing_intermediate_id(self):
        assert Phone.collection_path({"lawyer_id": 2}) == "lawyers/2/phones"

    def test_singleton(self):
        assert Headshot.element_path(None, {"lawyer_id": 1}) == "lawyers/1/headshot"
        assert Headshot.element_path("", {}) == "headshot"
        assert Headshot.collection_path({}) == "headshot"

    def test_singleton_parent(self):
        assert Setting.element_path(5, {}) == "account/settings/5"
        assert Setting.element_path(5, {"account_id": 9}) == "account/settings/5"

    def test_query_options(self):
        assert Lawyer.collection_path({"page": 2}) == "lawyers?page=2"
        assert (
            Address.collection_path({"lawyer_id": 2, "q": "seattle"})
            == "lawyers/2/addresses?q=seattle"
        )

    def test_explicit_query_options(self):
        assert (
            Address.element_path(3, {"lawyer_id": 2}, {"expand": "phones"})
            == "lawyers/2/addresses/3?expand=phones"
        )

    def test_ids_are_escaped(self):
        assert Lawyer.element_path("a/b c", {}) == "lawyers/a%2Fb%20c"

    def test_prefix_placeholders(self):
        from .. import paths

        assert paths.prefix_template_parameters(Firm) == ["firm_id"]
        assert Firm.prefix_parameters() == {"firm_id"}
        assert Firm.collection_path({"firm_id": 12}) == "/firms/12/firms"
        assert Firm.element_path(1, {"firm_id": 12, "x": 1}) == "/firms/12/firms/1?x=1"

    def test_new_element_path(self):
        from .. import paths

        assert paths.new_element_path(Address, {"lawyer_id": 2}) == "lawyers/2/addresses/new"
        assert (
            paths.custom_method_new_element_path(Address, "preview", {"lawyer_id": 2, "draft": 1})
            == "lawyers/2/addresses/new/preview?draft=1"
        )
        assert (
            paths.custom_method_new_element_path(resources.Address, "publish")
            == "/api/1/addresses/new/publish.json"
        )

    def test_custom_method_paths(self):
        from .. import paths

        assert (
            paths.custom_method_collection_path(Address, "search", {"lawyer_id": 1, "q": "x"})
            == "lawyers/1/addresses/search?q=x"
        )
        assert (
            paths.custom_method_element_path(Lawyer, 1, "billing_plan", {}, {})
            == "lawyers/1/billing_plan"
        )

    def test_cycle(self):
        from ..exceptions import CyclicAssociationError

        with pytest.raises(CyclicAssociationError) as e:
            Chicken.element_path(1, {"egg_id": 2})
        assert e.value.chain[0] is Chicken
        assert e.value.chain[-1] is Chicken

    def test_unknown_parent_type(self):
        from ..exceptions import ResourceTypeNotFoundError

        with pytest.raises(ResourceTypeNotFoundError) as e:
            Orphan.collection_path({"guardian_id": 1})
        assert e.value.name == "Guardian"
        assert "Guardian" in e.value.searched


class TestPrefixResolution:
    def test_parents(self):
        from ..paths import parents

        assert parents(Address) == [Lawyer, Doctor]
        assert parents(Phone) == [Address]
        assert parents(Lawyer) == []

    def test_belongs_to_with_parents(self):
        from ..paths import belongs_to_with_parents

        assert belongs_to_with_parents(Lawyer) == []
        assert belongs_to_with_parents(Address) == ["lawyer", "doctor"]
        assert belongs_to_with_parents(Phone) == ["address", "lawyer", "doctor"]

    def test_belongs_to_with_parents_follows_new_declarations(self):
        from ..paths import belongs_to_with_parents

        class Branch(Bare):
            pass

        assert belongs_to_with_parents(Branch) == []
        Branch.belongs_to("lawyer")
        assert belongs_to_with_parents(Branch) == ["lawyer"]

    def test_prefix_parameters(self):
        assert Phone.prefix_parameters() == {"address_id", "lawyer_id", "doctor_id"}

    def test_split_options(self):
        from ..paths import split_options

        prefix_options, query_options = split_options(Phone, {"address_id": 3, "page": 1})
        assert prefix_options == {"address_id": 3}
        assert query_options == {"page": 1}

    def test_prefix_associations(self):
        from ..paths import prefix_associations

        options = {"lawyer_id": 2, "address_id": 3}
        selected = prefix_associations(Phone, options)
        assert [(a.owner, a.attribute, value) for a, value in selected] == [
            (Address, "lawyer", 2),
            (Phone, "address", 3),
        ]
        assert options == {"lawyer_id": 2, "address_id": 3}

    def test_prefix_associations_with_singleton(self):
        from ..paths import prefix_associations

        selected = prefix_associations(Setting, {})
        assert [(a.attribute, value) for a, value in selected] == [("account", None)]

    def test_association_prefix(self):
        from ..paths import association_prefix

        assert association_prefix(Lawyer, {}) == ""
        assert association_prefix(Address, {"lawyer_id": 2}) == "lawyers/2/"
        assert association_prefix(Phone, {"doctor_id": 1, "address_id": 3}) == "doctors/1/addresses/3/"


class TestSitePaths:
    def test_collection_path(self):
        assert resources.Lawyer.collection_path({}) == "/api/1/lawyers.json"
        assert (
            resources.Address.collection_path({"lawyer_id": 1})
            == "/api/1/lawyers/1/addresses.json"
        )

    def test_element_path(self):
        assert (
            resources.Phone.element_path(4, {"doctor_id": 2, "address_id": 3})
            == "/api/1/doctors/2/addresses/3/phones/4.json"
        )

    def test_singleton(self):
        assert resources.Headshot.element_path("") == "/api/1/headshot.json"
        assert (
            resources.Headshot.element_path(None, {"lawyer_id": 1})
            == "/api/1/lawyers/1/headshot.json"
        )

    def test_no_extension(self):
        assert resources.NoExtension.collection_path({}) == "/api/1/no_extensions"
        assert resources.NoExtension.element_path("test", {}) == "/api/1/no_extensions/test"
