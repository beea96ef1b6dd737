"""
Tests for diversity and distance objectives.
"""

import logging

# Add src to path for imports
import sys
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from corehunter.dataset import CoreHunterData
from corehunter.distances import DistanceMatrixData
from corehunter.exceptions import ConfigurationError, DomainError, InvalidSelectionError
from corehunter.genetic_distances import ModifiedRogersDistance
from corehunter.genotypes import SimpleBiAllelicGenotypeVariantData, SimpleMultiAllelicGenotypeVariantData
from corehunter.objectives import (
    AccessionToNearestEntry,
    AlleleCoverage,
    AverageEntryToEntry,
    Coverage,
    EntryToNearestEntry,
    Evaluation,
    HeterozygousLociDiversity,
    NumberEffectiveAlleles,
    ProportionNonInformativeAlleles,
    ShannonsDiversity,
    WeightedIndex,
)
from fixture_data import (
    ACCESSION_TO_NEAREST_ENTRY_SUBSET1,
    ALLELE_NAMES,
    ALLELE_SCORES,
    ALLELES,
    AVERAGE_ENTRY_TO_ENTRY_SET,
    AVERAGE_ENTRY_TO_ENTRY_SUBSET1,
    COVERAGE_SUBSET1,
    DISTANCES,
    HETEROZYGOUS_LOCI_DIVERSITY,
    HETEROZYGOUS_LOCI_DIVERSITY_BI_ALLELIC_SUBSET1,
    MARKER_NAMES,
    NAMES,
    NUMBER_EFFECTIVE_ALLELES,
    PRECISION,
    PROPORTION_NON_INFORMATIVE_ALLELES_SUBSET1,
    SET,
    SHANNONS_DIVERSITY,
    SUBSET1,
)


def monomorphic_data(size=5, markers=3):
    """Every item carries the first of two alleles at every marker."""
    frequencies = [[[1.0, 0.0] for _ in range(markers)] for _ in range(size)]
    return SimpleMultiAllelicGenotypeVariantData(None, [f"m{i}" for i in range(markers)], None, frequencies)


class TestGenotypeObjectives(unittest.TestCase):
    """Test objectives computed from allele frequencies."""

    def setUp(self):
        logging.getLogger("corehunter").setLevel(logging.CRITICAL)
        self.genotypes = SimpleMultiAllelicGenotypeVariantData(NAMES, MARKER_NAMES, ALLELE_NAMES, ALLELES)
        self.data = CoreHunterData(self.genotypes)

    def test_shannons_diversity(self):
        evaluation = ShannonsDiversity().evaluate(SET, self.data)

        self.assertIsInstance(evaluation, Evaluation)
        self.assertAlmostEqual(evaluation.value, SHANNONS_DIVERSITY, delta=PRECISION)
        self.assertFalse(evaluation.minimizing)

    def test_shannons_diversity_of_identical_items_is_zero(self):
        evaluation = ShannonsDiversity().evaluate({0, 1, 2, 3, 4}, CoreHunterData(monomorphic_data()))
        self.assertEqual(evaluation.value, 0.0)

    def test_number_effective_alleles(self):
        evaluation = NumberEffectiveAlleles().evaluate(SET, self.data)

        self.assertAlmostEqual(evaluation.value, NUMBER_EFFECTIVE_ALLELES, delta=PRECISION)
        self.assertFalse(evaluation.minimizing)

    def test_number_effective_alleles_of_identical_items_is_one(self):
        evaluation = NumberEffectiveAlleles().evaluate(SET, monomorphic_data())
        self.assertAlmostEqual(evaluation.value, 1.0, delta=PRECISION)

    def test_number_effective_alleles_all_zero_frequencies(self):
        genotypes = SimpleMultiAllelicGenotypeVariantData(None, ["m"], [["a", "b"]], [[[0.0, 0.0]], [[0.0, 0.0]]])
        with self.assertRaises(DomainError):
            NumberEffectiveAlleles().evaluate({0, 1}, genotypes)

    def test_heterozygous_loci_diversity(self):
        evaluation = HeterozygousLociDiversity().evaluate(SUBSET1, self.data)
        self.assertAlmostEqual(evaluation.value, HETEROZYGOUS_LOCI_DIVERSITY, delta=PRECISION)
        self.assertFalse(evaluation.minimizing)

    def test_heterozygous_loci_diversity_bi_allelic(self):
        genotypes = SimpleBiAllelicGenotypeVariantData(NAMES, MARKER_NAMES, ALLELE_SCORES)
        evaluation = HeterozygousLociDiversity().evaluate(SUBSET1, genotypes)
        self.assertAlmostEqual(evaluation.value, HETEROZYGOUS_LOCI_DIVERSITY_BI_ALLELIC_SUBSET1, delta=PRECISION)

    def test_heterozygous_loci_diversity_counts_heterozygous_calls(self):
        genotypes = SimpleBiAllelicGenotypeVariantData(None, ["m"], [[1], [1], [0], [2]])
        self.assertAlmostEqual(HeterozygousLociDiversity().evaluate({0, 1}, genotypes).value, 1.0, delta=PRECISION)
        # opposite homozygotes have no heterozygous call
        self.assertAlmostEqual(HeterozygousLociDiversity().evaluate({2, 3}, genotypes).value, 0.0, delta=PRECISION)
        self.assertAlmostEqual(HeterozygousLociDiversity().evaluate({0, 2}, genotypes).value, 0.5, delta=PRECISION)

    def test_heterozygous_loci_diversity_multi_allelic(self):
        frequencies = [
            [[0.5, 0.5, 0.0], [1.0, 0.0]],
            [[0.0, 0.0, 1.0], [0.0, 1.0]],
            [[1.0, 0.0, 0.0], [1.0, 0.0]],
        ]
        genotypes = SimpleMultiAllelicGenotypeVariantData(None, ["m1", "m2"], None, frequencies)

        # m1: one of two items heterozygous, m2: none
        self.assertAlmostEqual(HeterozygousLociDiversity().evaluate({0, 1}, genotypes).value, 0.25, delta=PRECISION)
        self.assertAlmostEqual(HeterozygousLociDiversity().evaluate({1, 2}, genotypes).value, 0.0, delta=PRECISION)

    def test_coverage(self):
        evaluation = Coverage().evaluate(SUBSET1, self.data)
        self.assertAlmostEqual(evaluation.value, COVERAGE_SUBSET1, delta=PRECISION)
        self.assertFalse(evaluation.minimizing)

    def test_coverage_counts_markers_with_an_observed_allele(self):
        genotypes = SimpleBiAllelicGenotypeVariantData(None, ["m1", "m2"], [[2, 2], [0, 2], [2, 0]])
        self.assertAlmostEqual(Coverage().evaluate({0}, genotypes).value, 1.0, delta=PRECISION)

    def test_coverage_of_partial_selection(self):
        # item 0 has no data for m2
        genotypes = SimpleBiAllelicGenotypeVariantData(None, ["m1", "m2"], [[2, None], [0, 2]])
        self.assertAlmostEqual(Coverage().evaluate({0}, genotypes).value, 0.5, delta=PRECISION)
        self.assertAlmostEqual(Coverage().evaluate({0, 1}, genotypes).value, 1.0, delta=PRECISION)

    def test_coverage_without_present_allele(self):
        frequencies = [[[0.0, 0.0], [0.5, 0.5]], [[1.0, 0.0], [0.0, 1.0]]]
        genotypes = SimpleMultiAllelicGenotypeVariantData(None, ["m1", "m2"], None, frequencies)
        self.assertAlmostEqual(Coverage().evaluate({0}, genotypes).value, 0.5, delta=PRECISION)

    def test_allele_coverage(self):
        # alleles present in the collection: m1-ref, m1-alt, m2-ref, m2-alt
        genotypes = SimpleBiAllelicGenotypeVariantData(None, ["m1", "m2"], [[2, 2], [0, 2], [2, 0]])
        self.assertAlmostEqual(AlleleCoverage().evaluate({0}, genotypes).value, 0.5, delta=PRECISION)
        self.assertAlmostEqual(AlleleCoverage().evaluate({0, 1}, genotypes).value, 0.75, delta=PRECISION)
        self.assertAlmostEqual(AlleleCoverage().evaluate({1, 2}, genotypes).value, 1.0, delta=PRECISION)
        self.assertFalse(AlleleCoverage().evaluate({0}, genotypes).minimizing)

    def test_proportion_non_informative_alleles(self):
        evaluation = ProportionNonInformativeAlleles().evaluate(SUBSET1, self.data)
        self.assertAlmostEqual(evaluation.value, PROPORTION_NON_INFORMATIVE_ALLELES_SUBSET1, delta=PRECISION)
        self.assertTrue(evaluation.minimizing)

    def test_proportion_non_informative_alleles_threshold(self):
        # additionally counts the four mk4 alleles at 0.25
        evaluation = ProportionNonInformativeAlleles(threshold=0.3).evaluate(SUBSET1, self.data)
        self.assertAlmostEqual(evaluation.value, 7 / 19, delta=PRECISION)

    def test_proportion_non_informative_alleles_threshold_is_inclusive(self):
        # the mk4 alleles at exactly 0.25 count
        evaluation = ProportionNonInformativeAlleles(threshold=0.25).evaluate(SUBSET1, self.data)
        self.assertAlmostEqual(evaluation.value, 7 / 19, delta=PRECISION)

    def test_missing_marker_is_left_out(self):
        frequencies = [
            [[1.0, 0.0], [0.5, 0.5]],
            [[0.0, 1.0], None],
        ]
        genotypes = SimpleMultiAllelicGenotypeVariantData(None, ["m1", "m2"], None, frequencies)

        # only m1 has data for item 1
        self.assertAlmostEqual(HeterozygousLociDiversity().evaluate({1}, genotypes).value, 0.0, delta=PRECISION)
        # both markers have data for the pair, m2 from item 0 only
        self.assertAlmostEqual(HeterozygousLociDiversity().evaluate({0, 1}, genotypes).value, 0.5, delta=PRECISION)

    def test_no_marker_with_data(self):
        genotypes = SimpleMultiAllelicGenotypeVariantData(None, ["m"], [["a", "b"]], [[[1.0, 0.0]], [None]])
        with self.assertRaises(DomainError):
            ShannonsDiversity().evaluate({1}, genotypes)

    def test_empty_selection(self):
        for objective in (ShannonsDiversity(), NumberEffectiveAlleles(), Coverage(), HeterozygousLociDiversity()):
            with self.assertRaises(DomainError):
                objective.evaluate(set(), self.data)

    def test_unknown_ids(self):
        with self.assertRaises(InvalidSelectionError):
            ShannonsDiversity().evaluate({0, 5}, self.data)

    def test_dataset_without_genotypes(self):
        data = CoreHunterData(distances=DistanceMatrixData(DISTANCES))
        with self.assertRaises(ConfigurationError):
            ShannonsDiversity().evaluate(SET, data)

    def test_concurrent_evaluation(self):
        """Test that evaluations from several threads match sequential ones."""
        selections = [{0, 1}, {2, 3}, {1, 2, 4}, SET] * 10
        objective = NumberEffectiveAlleles()
        expected = [objective.evaluate(selection, self.data) for selection in selections]

        with ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(lambda s: objective.evaluate(s, self.data), selections))

        self.assertEqual(results, expected)


class TestDistanceObjectives(unittest.TestCase):
    """Test objectives computed from pairwise distances."""

    def setUp(self):
        logging.getLogger("corehunter").setLevel(logging.CRITICAL)
        self.distances = DistanceMatrixData(DISTANCES, names=NAMES)
        self.data = CoreHunterData(distances=self.distances)

    def test_average_entry_to_entry(self):
        objective = AverageEntryToEntry()

        self.assertAlmostEqual(objective.evaluate(SET, self.data).value, AVERAGE_ENTRY_TO_ENTRY_SET, delta=PRECISION)
        self.assertAlmostEqual(objective.evaluate(SUBSET1, self.data).value, AVERAGE_ENTRY_TO_ENTRY_SUBSET1,
                               delta=PRECISION)
        self.assertFalse(objective.is_minimizing())

    def test_entry_to_nearest_entry(self):
        evaluation = EntryToNearestEntry().evaluate({0, 1, 2}, self.data)
        self.assertAlmostEqual(evaluation.value, (0.6 + 0.8 + 0.6) / 3, delta=PRECISION)

    def test_accession_to_nearest_entry(self):
        evaluation = AccessionToNearestEntry().evaluate(SUBSET1, self.data)
        self.assertAlmostEqual(evaluation.value, ACCESSION_TO_NEAREST_ENTRY_SUBSET1, delta=PRECISION)
        self.assertTrue(evaluation.minimizing)

    def test_distance_metric_passed_directly(self):
        evaluation = AverageEntryToEntry().evaluate(SUBSET1, self.distances)
        self.assertAlmostEqual(evaluation.value, AVERAGE_ENTRY_TO_ENTRY_SUBSET1, delta=PRECISION)

    def test_genotype_derived_metric(self):
        genotypes = SimpleBiAllelicGenotypeVariantData(NAMES, MARKER_NAMES, ALLELE_SCORES)
        metric = ModifiedRogersDistance(genotypes)
        data = CoreHunterData(genotypes)

        evaluation = AverageEntryToEntry(metric).evaluate({0, 1}, data)

        self.assertAlmostEqual(evaluation.value, metric.get_distance(0, 1), delta=PRECISION)

    def test_single_item_selection(self):
        with self.assertRaises(DomainError):
            AverageEntryToEntry().evaluate({1}, self.data)
        with self.assertRaises(DomainError):
            EntryToNearestEntry().evaluate({1}, self.data)
        self.assertAlmostEqual(AccessionToNearestEntry().evaluate({0}, self.data).value,
                               (0.0 + 0.8 + 0.6 + 0.4 + 0.2) / 5, delta=PRECISION)

    def test_unknown_ids(self):
        with self.assertRaises(InvalidSelectionError):
            AverageEntryToEntry().evaluate({0, 9}, self.data)

    def test_dataset_without_distances(self):
        data = CoreHunterData(SimpleBiAllelicGenotypeVariantData(NAMES, MARKER_NAMES, ALLELE_SCORES))
        with self.assertRaises(ConfigurationError):
            AverageEntryToEntry().evaluate(SET, data)


class TestWeightedIndex(unittest.TestCase):
    """Test the weighted combination of objectives."""

    def setUp(self):
        logging.getLogger("corehunter").setLevel(logging.CRITICAL)
        genotypes = SimpleMultiAllelicGenotypeVariantData(NAMES, MARKER_NAMES, ALLELE_NAMES, ALLELES)
        self.data = CoreHunterData(genotypes, None, DistanceMatrixData(DISTANCES, names=NAMES))

    def test_weighted_sum(self):
        index = WeightedIndex([
            (ShannonsDiversity(), 1.0),
            (ProportionNonInformativeAlleles(), 2.0),
            (AverageEntryToEntry(), 0.5),
        ])

        evaluation = index.evaluate(iter(SUBSET1), self.data)

        expected = SHANNONS_DIVERSITY - 2.0 * PROPORTION_NON_INFORMATIVE_ALLELES_SUBSET1 \
            + 0.5 * AVERAGE_ENTRY_TO_ENTRY_SUBSET1
        self.assertAlmostEqual(evaluation.value, expected, delta=PRECISION)
        self.assertFalse(evaluation.minimizing)

    def test_empty_index(self):
        with self.assertRaises(ConfigurationError):
            WeightedIndex([])


if __name__ == "__main__":
    unittest.main()
