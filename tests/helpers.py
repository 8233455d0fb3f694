from mdb.frame import Frame, Validity

# 10 samples per bit, 110 samples per frame.
SAMPLE_PERIOD = 1e-5
SPB = 10
SPAN = 11 * SPB

def make_frame(ss, value, mode=False, validity=Validity.OK, span=SPAN):
    return Frame(ss, span, value, mode, validity)

def frames_at(ss, pairs, gap=0):
    '''Frames for (value, mode) pairs starting at ss, 'gap' samples apart.'''
    frames = []
    for value, mode in pairs:
        frames.append(make_frame(ss, value, mode))
        ss += SPAN + gap
    return frames

def is_ordered(anns):
    return all(a.ss <= b.ss for a, b in zip(anns, anns[1:]))
