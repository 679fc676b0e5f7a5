import os, sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import io

import pytest
from lxml import etree

from tmx_filter import FilterOptions, MalformedStreamError, MalformedUnitError, TmxFilter, run_pipeline
from tmx_filter.events import ElementEnd, ElementStart, Text
from tmx_filter.stream import EventReader

SAMPLE_TMX = os.path.join(os.path.dirname(__file__), '..', 'sample_data', 'sample_corpus.tmx')


class ListSource:
    def __init__(self, events):
        self.events = list(events)

    def peek(self):
        return self.events[0] if self.events else None

    def next(self):
        return self.events.pop(0)


class ListSink:
    def __init__(self):
        self.events = []

    def write(self, event):
        self.events.append(event)


def make_filter(tmp_path, **choices):
    return TmxFilter(FilterOptions.from_choices(**choices), str(tmp_path / 'logs'))


def read_events(path):
    with open(path, 'rb') as f:
        return list(EventReader(f))


def plain_unit(text, vote=False):
    events = [ElementStart("tu")]
    if vote:
        events += [ElementStart("prop", {"type": "vote"}), Text("1"), ElementEnd("prop")]
    events += [ElementStart("tuv", {"lang": "EN"}), ElementStart("seg"), Text(text),
               ElementEnd("seg"), ElementEnd("tuv"), ElementEnd("tu")]
    return events


def test_filter_file_removes_languages_votes_and_markup(tmp_path):
    tr = make_filter(tmp_path, langs='EN,ES', drop_vote_units=True, plaintext=True)
    out = tmp_path / 'out.tmx'
    report = tr.filter_file(SAMPLE_TMX, str(out))
    assert report.units == 3
    assert report.dropped_units == 1
    assert report.removed_variants == 2
    tree = etree.parse(str(out))
    assert tree.docinfo.doctype == '<!DOCTYPE tmx SYSTEM "tmx14.dtd">'
    assert len(tree.xpath('//tu')) == 2
    langs = {t.get('{http://www.w3.org/XML/1998/namespace}lang') for t in tree.xpath('//tuv')}
    assert langs == {'EN', 'ES'}
    assert not tree.xpath('//prop[@type="vote"]')
    assert not tree.xpath('//sub') and not tree.xpath('//hi')
    segs = [''.join(t.find('seg').itertext()) for t in tree.xpath('//tuv')
            if t.get('{http://www.w3.org/XML/1998/namespace}lang') == 'EN']
    assert segs == ['The General Assembly adopted the resolution.', '* Reissued for technical reasons.']
    assert tree.xpath('//comment()')


def test_identity_run_preserves_events(tmp_path):
    tr = make_filter(tmp_path)
    out = tmp_path / 'out.tmx'
    report = tr.filter_file(SAMPLE_TMX, str(out))
    assert report.dropped_units == 0 and report.removed_variants == 0
    assert read_events(str(out)) == read_events(SAMPLE_TMX)


def test_filtering_twice_changes_nothing(tmp_path):
    tr = make_filter(tmp_path, langs='FR', drop_vote_units=True, plaintext=True)
    first = tmp_path / 'first.tmx'
    second = tmp_path / 'second.tmx'
    tr.filter_file(SAMPLE_TMX, str(first))
    report = tr.filter_file(str(first), str(second))
    assert report.dropped_units == 0 and report.removed_variants == 0
    assert read_events(str(second)) == read_events(str(first))


def test_filter_file_writes_log(tmp_path):
    tr = make_filter(tmp_path, sessions='61')
    tr.filter_file(SAMPLE_TMX, str(tmp_path / 'out.tmx'))
    logs = os.listdir(tmp_path / 'logs')
    assert len(logs) == 1 and logs[0].startswith('sample_corpus_')
    text = (tmp_path / 'logs' / logs[0]).read_text(encoding='utf-8')
    assert 'START:' in text and 'END  :' in text
    assert 'Session filtering is not supported' in text
    assert 'Events read:' in text


def test_dropped_unit_indentation_collapses():
    events = ([ElementStart("body"), Text("\n  ")] + plain_unit("a", vote=True)
              + [Text("\n  ")] + plain_unit("b") + [Text("\n")] + [ElementEnd("body")])
    sink = ListSink()
    report = run_pipeline(ListSource(events), sink, FilterOptions(drop_vote_units=True))
    assert sink.events == [ElementStart("body"), Text("\n  ")] + plain_unit("b") + [Text("\n"), ElementEnd("body")]
    assert report.units == 2 and report.dropped_units == 1


def test_document_without_units_is_copied():
    events = [ElementStart("body"), Text("x"), ElementEnd("body")]
    sink = ListSink()
    report = run_pipeline(ListSource(events), sink, FilterOptions(drop_vote_units=True))
    assert sink.events == events
    assert report.units == 0


def test_truncated_unit_raises_with_ordinal():
    events = [ElementStart("body")] + plain_unit("a") + plain_unit("second")[:-1]
    with pytest.raises(MalformedStreamError) as exc:
        run_pipeline(ListSource(events), ListSink(), FilterOptions())
    assert exc.value.unit == 2
    assert "second" in str(exc.value)


def test_stray_unit_end_raises():
    events = [ElementStart("body"), ElementEnd("tu"), ElementEnd("body")]
    with pytest.raises(MalformedStreamError):
        run_pipeline(ListSource(events), ListSink(), FilterOptions())


def test_nested_unit_raises(tmp_path):
    data = b"<body><tu><tu><tuv lang='EN'><seg>a</seg></tuv></tu></tu></body>"
    tr = make_filter(tmp_path)
    with pytest.raises(MalformedStreamError) as exc:
        tr.filter_stream(io.BytesIO(data), io.BytesIO())
    assert exc.value.unit == 1


def test_unit_without_variant_raises_with_ordinal(tmp_path):
    data = b"<body><tu><tuv lang='EN'><seg>a</seg></tuv></tu><tu><prop type='x'>1</prop></tu></body>"
    tr = make_filter(tmp_path, drop_vote_units=True)
    with pytest.raises(MalformedUnitError) as exc:
        tr.filter_stream(io.BytesIO(data), io.BytesIO())
    assert exc.value.unit == 2


@pytest.mark.parametrize('choices', [
    {},
    {'langs': 'EN'},
    {'drop_vote_units': True},
    {'plaintext': True},
])
def test_sample_output_is_well_formed(tmp_path, choices):
    tr = make_filter(tmp_path, **choices)
    with open(SAMPLE_TMX, 'rb') as inp:
        out = io.BytesIO()
        tr.filter_stream(inp, out)
    data = out.getvalue()
    root = etree.fromstring(data)
    assert root.tag == 'tmx'
    assert b'ns0:' not in data
    for tuv in root.iter('tuv'):
        assert tuv.get('{http://www.w3.org/XML/1998/namespace}lang') in {'EN', 'FR', 'ES'}

    again = io.BytesIO()
    report = tr.filter_stream(io.BytesIO(data), again)
    assert report.dropped_units == 0 and report.removed_variants == 0
    assert list(EventReader(io.BytesIO(again.getvalue()))) == list(EventReader(io.BytesIO(data)))
    if not choices:
        assert list(EventReader(io.BytesIO(data))) == read_events(SAMPLE_TMX)
