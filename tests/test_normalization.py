"""
Unit Tests for value normalization and source enrichment
"""

import json
import tempfile
import unittest
from pathlib import Path

from normalization.schema import ValueKind, classifyValue, loadJson, readRecordArray, writeRecordArray
from utils.errors import PipelineError
from normalization.normalizer import ValueNormalizer, normalizeValue, normalizeRecord
from normalization.enrichment import SourceEnricher, extractIpFromSourceFile


class TestValueNormalization(unittest.TestCase):
    
    def testClassifyValue(self):
        self.assertEqual(classifyValue(True), ValueKind.BOOL)
        self.assertEqual(classifyValue(0), ValueKind.NUMBER)
        self.assertEqual(classifyValue(1.5), ValueKind.NUMBER)
        self.assertEqual(classifyValue(None), ValueKind.NULL)
        self.assertEqual(classifyValue('x'), ValueKind.STRING)
        self.assertEqual(classifyValue([1]), ValueKind.OTHER)
        self.assertEqual(classifyValue({'a': 1}), ValueKind.OTHER)
    
    def testNumbers(self):
        self.assertEqual(normalizeValue(4624), '4624')
        self.assertEqual(normalizeValue(-7), '-7')
        self.assertEqual(normalizeValue(3.0), '3')
        self.assertEqual(normalizeValue(0.1), '0.1')
        self.assertEqual(normalizeValue(2.5e-3), '0.0025')
        self.assertEqual(normalizeValue(1e20), '100000000000000000000')
    
    def testBooleansAndNull(self):
        self.assertEqual(normalizeValue(True), 'true')
        self.assertEqual(normalizeValue(False), 'false')
        self.assertEqual(normalizeValue(None), '')
    
    def testStringsUnchanged(self):
        self.assertEqual(normalizeValue(''), '')
        self.assertEqual(normalizeValue('alice'), 'alice')
    
    def testNestedValuesRenderAsJson(self):
        self.assertEqual(normalizeValue([1, 'a']), '[1,"a"]')
        self.assertEqual(normalizeValue({'b': 2, 'a': None}), '{"a":null,"b":2}')
    
    def testNormalizationIsIdempotent(self):
        record = {
            'EventId': 4624,
            'Level': 0,
            'Elevated': False,
            'Keywords': None,
            'Score': 12.75,
            'TargetUserName': 'alice',
            'Extra': {'k': [1, 2]}
        }
        once = normalizeRecord(record)
        
        self.assertTrue(all(isinstance(value, str) for value in once.values()))
        self.assertEqual(normalizeRecord(once), once)
        self.assertEqual(set(once), set(record))


class TestSourceEnrichment(unittest.TestCase):
    
    def testIpFromWindowsPath(self):
        self.assertEqual(extractIpFromSourceFile('C:\\logs\\192.168.1.5.evtx'), '192.168.1.5')
    
    def testIpFromPosixPathAndUppercaseExtension(self):
        self.assertEqual(extractIpFromSourceFile('/data/raw/10.0.0.9.EVTX'), '10.0.0.9')
    
    def testHostnameIsNotEnriched(self):
        self.assertIsNone(extractIpFromSourceFile('C:\\logs\\DC01.evtx'))
        self.assertIsNone(extractIpFromSourceFile('C:\\logs\\300.1.1.1.evtx'))
        self.assertIsNone(extractIpFromSourceFile(''))
        self.assertIsNone(extractIpFromSourceFile(42))
    
    def testRecordEnrichment(self):
        enricher = SourceEnricher()
        
        record = {'SourceFile': 'C:\\logs\\192.168.1.5.evtx', 'TargetUserName': 'alice'}
        self.assertEqual(enricher.transformRecord(record)['logip'], '192.168.1.5')
        self.assertNotIn('logip', record)
        
        hostRecord = {'SourceFile': 'C:\\logs\\DC01.evtx'}
        self.assertEqual(enricher.transformRecord(hostRecord), {'SourceFile': 'C:\\logs\\DC01.evtx'})
        
        bare = {'TargetUserName': 'bob'}
        self.assertEqual(enricher.transformRecord(bare), {'TargetUserName': 'bob'})


class TestCorpusStages(unittest.TestCase):
    
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.inputDir = self.root / 'merged'
        self.outputDir = self.root / 'formatted'
        self.inputDir.mkdir()
    
    def tearDown(self):
        self.tmp.cleanup()
    
    def testNormalizerWritesNewFilesAndLeavesInputs(self):
        records = [{'EventId': 4624, 'Flag': True}, {'EventId': 4624, 'Missing': None}]
        inputFile = self.inputDir / '4624_parsed.json'
        writeRecordArray(inputFile, records)
        before = inputFile.read_bytes()
        
        result = ValueNormalizer(10).run(self.inputDir, self.outputDir)
        
        self.assertEqual(result.succeeded, 1)
        self.assertEqual(inputFile.read_bytes(), before)
        self.assertEqual(
            readRecordArray(self.outputDir / '4624_parsed.json'),
            [{'EventId': '4624', 'Flag': 'true'}, {'EventId': '4624', 'Missing': ''}]
        )
    
    def testFailingFileDoesNotAffectSiblings(self):
        writeRecordArray(self.inputDir / '4624_parsed.json', [{'EventId': 4624}])
        (self.inputDir / '4625_parsed.json').write_text('not json', encoding='utf-8')
        (self.inputDir / '4634_parsed.json').write_text(json.dumps([1, 2]), encoding='utf-8')
        
        result = ValueNormalizer(10).run(self.inputDir, self.outputDir)
        
        self.assertEqual(result.succeeded, 1)
        self.assertEqual(result.failed, 2)
        self.assertTrue((self.outputDir / '4624_parsed.json').exists())
        self.assertFalse((self.outputDir / '4625_parsed.json').exists())
    
    def testEnricherPreservesRecordCount(self):
        records = [
            {'SourceFile': 'C:\\logs\\10.1.1.1.evtx'},
            {'SourceFile': 'C:\\logs\\DC01.evtx'},
            {'EventId': '4624'},
        ]
        writeRecordArray(self.inputDir / '4624_parsed.json', records)
        
        result = SourceEnricher(10).run(self.inputDir, self.outputDir)
        
        enriched = readRecordArray(self.outputDir / '4624_parsed.json')
        self.assertEqual(result.succeeded, 1)
        self.assertEqual(len(enriched), 3)
        self.assertEqual([r.get('logip') for r in enriched], ['10.1.1.1', None, None])
    
    def testUnwritableOutputDirectoryIsFatal(self):
        writeRecordArray(self.inputDir / '4624_parsed.json', [{'EventId': 4624}])
        blocker = self.root / 'blocker'
        blocker.write_text('not a directory', encoding='utf-8')
        
        with self.assertRaises(PipelineError):
            ValueNormalizer(10).run(self.inputDir, blocker / 'formatted')
    
    def testMissingInputDirectory(self):
        with self.assertRaises(FileNotFoundError):
            SourceEnricher(10).run(self.root / 'absent', self.outputDir)


class TestStrictJson(unittest.TestCase):
    
    def testRejectsNonStandardConstants(self):
        for text in ['NaN', '[Infinity]', '{"a": -Infinity}']:
            with self.assertRaises(ValueError):
                loadJson(text)
    
    def testDeepNestingIsValueError(self):
        with self.assertRaises(ValueError):
            loadJson('[' * 200000)
    
    def testWriteRejectsNaN(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(ValueError):
                writeRecordArray(Path(tmp) / '4624_parsed.json', [{'Score': float('nan')}])
    
    def testReadRejectsNonStandardConstants(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / '4624_parsed.json'
            path.write_text('[{"Score": NaN}]', encoding='utf-8')
            with self.assertRaises(ValueError):
                readRecordArray(path)


if __name__ == '__main__':
    unittest.main()
