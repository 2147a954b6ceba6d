"""
Tests for the layout pipeline
"""

import unittest
import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from layout_engine.pipeline import DebugBundle, DocumentAnalyzer, PipelineConfig
from layout_engine.types import (
    Annotation, CitationOverlay, ExternalLinkOverlay, OutlineEntry, Position, ReferenceOverlay,
)
from fixtures import InMemorySource, make_page

BODY = [
    "Prior work [1] showed this clearly.",
    "Another result [2] was found.",
]
BIBLIOGRAPHY = [
    "References",
    "[1] Smith J. A study of things. Journal of Tests, 2001.",
    "[2] Jones K. Another study here. Proc. Conf, 2005.",
]


def _source(**kwargs):
    pages = [make_page(BODY, page_index=0), make_page(BIBLIOGRAPHY, page_index=1)]
    return InMemorySource(pages, **kwargs)


class TestDocumentAnalyzer(unittest.TestCase):

    def test_citations_and_references(self):
        analyzer = DocumentAnalyzer(_source())
        data = analyzer.get_processed_data()

        self.assertEqual(data['page_labels'], ['1', '2'])
        self.assertEqual(sorted(data['pages']), [0, 1])

        citations = data['pages'][0]['overlays']
        self.assertEqual(len(citations), 2)
        self.assertTrue(all(isinstance(o, CitationOverlay) for o in citations))
        self.assertEqual([o.word for o in citations], ['[1]', '[2]'])

        references = data['pages'][1]['overlays']
        self.assertEqual(len(references), 2)
        self.assertTrue(all(isinstance(o, ReferenceOverlay) for o in references))
        self.assertEqual(references[0].references[0].index, 1)

        self.assertIn('chars', data['pages'][0])
        self.assertIn('view_box', data['pages'][0])

    def test_debug_bundle(self):
        analyzer = DocumentAnalyzer(_source())
        analyzer.get_processed_data()
        debug = analyzer.debug
        self.assertEqual(debug.num_pages, 2)
        self.assertEqual(debug.reference_strategy, 'list-number')
        self.assertEqual(debug.references_count, 2)
        self.assertEqual(debug.citations_count, 2)
        self.assertEqual(debug.cited_references_count, 2)

    def test_page_glyphs_keep_no_reference_urls(self):
        links = {1: [Annotation(rect=(70, 687, 400, 699), url='https://example.org/smith')]}
        analyzer = DocumentAnalyzer(_source(annotations=links))
        data = analyzer.get_processed_data()
        reference = next(o for o in data['pages'][1]['overlays'] if isinstance(o, ReferenceOverlay))
        self.assertEqual(reference.references[0].text_parts[0].url, 'https://example.org/smith')
        self.assertTrue(all(g.url is None for g in analyzer.page_chars(1)))

    def test_internal_links_on_citations_excluded(self):
        annotations = {0: [
            Annotation(rect=(125, 699, 142, 711), dest='ref1'),
            Annotation(rect=(145, 687, 162, 699), dest='ref2'),
        ]}
        destinations = {
            'ref1': Position(page_index=1, rects=[(72, 688, 72, 688)]),
            'ref2': Position(page_index=1, rects=[(72, 676, 72, 676)]),
        }
        analyzer = DocumentAnalyzer(_source(annotations=annotations, destinations=destinations))
        data = analyzer.get_processed_data()
        overlays = data['pages'][0]['overlays']
        self.assertEqual(len(overlays), 2)
        self.assertTrue(all(isinstance(o, CitationOverlay) for o in overlays))
        self.assertEqual(analyzer.debug.excluded_links_count, 2)

    def test_too_many_pages_skips_references(self):
        config = PipelineConfig()
        config.references.max_pages = 1
        analyzer = DocumentAnalyzer(_source(), config)
        data = analyzer.get_processed_data()
        self.assertEqual(data['pages'], {})
        self.assertEqual(analyzer.debug.reject_reasons, {'too_many_pages': 1})

    def test_links_only(self):
        pages = [make_page(["Code at https://example.org/tool."]), make_page(BIBLIOGRAPHY)]
        analyzer = DocumentAnalyzer(InMemorySource(pages), PipelineConfig.links_only())
        data = analyzer.get_processed_data()
        self.assertEqual(sorted(data['pages']), [0])
        overlay = data['pages'][0]['overlays'][0]
        self.assertIsInstance(overlay, ExternalLinkOverlay)
        self.assertEqual(overlay.url, 'https://example.org/tool')
        self.assertEqual(analyzer.debug.references_count, 0)

    def test_page_data(self):
        analyzer = DocumentAnalyzer(InMemorySource([make_page(["Code at https://example.org/tool."])]))
        data = analyzer.get_page_data(0)
        self.assertTrue(data['partial'])
        self.assertEqual(len(data['overlays']), 1)
        self.assertEqual(len(data['chars']), 31)

    def test_embedded_outline(self):
        outline = [OutlineEntry(title='Intro', dest='d'), OutlineEntry(title='Refs', dest='r')]
        destinations = {'d': Position(page_index=0), 'r': Position(page_index=1)}
        analyzer = DocumentAnalyzer(_source(outline=outline, destinations=destinations))
        nodes = analyzer.get_outline()
        self.assertEqual([n.title for n in nodes], ['Intro', 'Refs'])
        self.assertEqual(analyzer.debug.outline_source, 'embedded')

    def test_no_outline(self):
        analyzer = DocumentAnalyzer(_source())
        self.assertEqual(analyzer.get_outline(), [])
        self.assertEqual(analyzer.debug.outline_source, 'none')

    def test_catalog_labels_used(self):
        analyzer = DocumentAnalyzer(_source(page_labels=['i', 'ii']))
        self.assertEqual(analyzer.get_page_labels(), ['i', 'ii'])


class TestDebugBundle(unittest.TestCase):

    def test_summary(self):
        debug = DebugBundle(num_pages=3, reference_strategy='list-number', references_count=4)
        debug.reject('no_references')
        debug.reject('no_references')
        summary = debug.summary()
        self.assertIn("LAYOUT ENGINE DEBUG SUMMARY", summary)
        self.assertIn("Pages: 3", summary)
        self.assertIn("Reference Strategy: list-number", summary)
        self.assertIn("  no_references: 2", summary)


if __name__ == '__main__':
    unittest.main()
